"""
Owned, cancellable timers.

Each stateful component owns one ``TimerSlot`` per purpose (validation
debounce, auto-correction). Scheduling on a slot always cancels the timer it
replaces, so at most one timer per purpose is ever pending.
"""

import asyncio
from typing import Callable, Optional

from storewizard.utils.logger import get_logger

logger = get_logger(__name__)


class PendingTimer:
    """Opaque handle over an event-loop callback scheduled with ``call_later``."""

    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle
        self._fired = False

    def _mark_fired(self) -> None:
        self._fired = True

    @property
    def pending(self) -> bool:
        return not self._fired and not self._handle.cancelled()

    def cancel(self) -> None:
        self._handle.cancel()


class TimerSlot:
    """
    Holds at most one pending timer for a single purpose.

    Example:
        >>> slot = TimerSlot("validation")
        >>> slot.schedule(0.5, on_fire)   # starts a timer
        >>> slot.schedule(0.5, on_fire)   # cancels the first one
    """

    def __init__(self, purpose: str):
        self.purpose = purpose
        self._timer: Optional[PendingTimer] = None

    @property
    def pending(self) -> bool:
        return self._timer is not None and self._timer.pending

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> PendingTimer:
        """
        Cancel the current timer and start a new one.

        Must be called from code running on the event loop.
        """
        self.cancel()
        loop = asyncio.get_running_loop()

        timer: Optional[PendingTimer] = None

        def fire() -> None:
            timer._mark_fired()
            if self._timer is timer:
                self._timer = None
            callback()

        timer = PendingTimer(loop.call_later(delay_seconds, fire))
        self._timer = timer
        logger.debug("Timer scheduled", purpose=self.purpose, delay_seconds=delay_seconds)
        return timer

    def cancel(self) -> bool:
        """Cancel the pending timer, if any. Returns True when one was cancelled."""
        timer, self._timer = self._timer, None
        if timer is not None and timer.pending:
            timer.cancel()
            logger.debug("Timer cancelled", purpose=self.purpose)
            return True
        return False
