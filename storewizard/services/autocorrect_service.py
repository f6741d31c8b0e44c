"""
Deferred auto-correction of the product-link input.

When a pasted link carries tracking parameters after its ``.html`` page
extension, the user first sees the text as pasted; after a quiet period the
displayed value is silently replaced by its canonical form and re-validated.
Blur and paste events correct immediately.
"""

from typing import Callable, Optional

from storewizard.classifiers.canonicalizer import canonicalize, has_trailing_content
from storewizard.config.settings import Settings, get_settings
from storewizard.services.validation_service import ValidationService
from storewizard.utils.logger import get_logger
from storewizard.utils.timers import TimerSlot

logger = get_logger(__name__)

ReplaceListener = Callable[[str], None]


class AutoCorrectionService:
    """
    Owns the displayed value of the product-link field and its correction timer.

    Every input change is forwarded to the validator; the validator keeps
    reporting ``VALIDATING`` for values this service is about to trim.
    """

    def __init__(
        self,
        validator: ValidationService,
        settings: Optional[Settings] = None,
        delay_ms: Optional[float] = None,
        on_replace: Optional[ReplaceListener] = None,
    ):
        """
        Initialize the auto-correction scheduler.

        Args:
            validator: Validator of the same input field
            settings: Application settings (uses defaults if not provided)
            delay_ms: Quiet period before correcting; overrides settings
            on_replace: Called with the canonical value whenever the
                displayed value is replaced
        """
        self.settings = settings or get_settings()
        self.validator = validator
        self.delay_ms = delay_ms if delay_ms is not None else self.settings.autocorrect_delay_ms
        self.on_replace = on_replace
        self._timer = TimerSlot("autocorrect")
        self._value = ""

    @property
    def value(self) -> str:
        """The value currently displayed in the input field."""
        return self._value

    @property
    def pending(self) -> bool:
        return self._timer.pending

    def on_input(self, raw: str) -> None:
        """Handle a keystroke: validate, and schedule a correction if needed."""
        self._value = raw if isinstance(raw, str) else ""
        self.validator.on_input(self._value)

        if has_trailing_content(self._value):
            self._timer.schedule(self.delay_ms / 1000, self.correct_now)
        else:
            self._timer.cancel()

    def on_paste(self, raw: str) -> None:
        """A paste replaces the field content and is corrected at once."""
        self._timer.cancel()
        self._value = raw if isinstance(raw, str) else ""
        if not self.correct_now():
            self.validator.on_input(self._value)

    def on_blur(self) -> None:
        """Focus loss corrects immediately instead of waiting for the timer."""
        self._timer.cancel()
        self.correct_now()

    def correct_now(self) -> bool:
        """
        Replace the displayed value with its canonical form.

        Returns:
            True when the value changed and was re-validated.
        """
        self._timer.cancel()
        canonical = canonicalize(self._value)
        if not canonical or canonical == self._value:
            return False

        logger.debug("Input auto-corrected", original=self._value, canonical=canonical)
        self._value = canonical

        if self.on_replace is not None:
            try:
                self.on_replace(canonical)
            except Exception as cb_err:
                logger.warning(f"Replace listener failed: {cb_err}")

        self.validator.on_input(canonical, skip_trim_suppression=True)
        return True

    def close(self) -> None:
        """Tear down: cancel the pending correction."""
        self._timer.cancel()
