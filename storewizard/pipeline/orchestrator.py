"""
Generation progress orchestrator.

Drives the progress screen of the wizard while the store is generated. The
real duration of generation is unknown, so progress is interpolated from wall
clock time over four fixed phases and fast-forwarded by checkpoints pushed
from two concurrent calls:

    - preview: fast, best effort; success raises the floor to stage 2 / 40%
    - final:   authoritative; success completes the run, failure ends it

Features:
    - Monotonic stage/percent: checkpoints are floors, never ceilings
    - Run tokens: nothing from an abandoned run mutates a newer run
    - Settle delay: the completed state stays visible before SUCCEEDED
    - Explicit teardown of the sampler and in-flight calls
"""

import asyncio
import math
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, NamedTuple, Optional, Union

from storewizard.config.settings import Settings, get_settings
from storewizard.models.schemas import (
    MAX_STAGE,
    MIN_STAGE,
    Checkpoint,
    CheckpointSource,
    GenerationResult,
    GenerationRun,
    ProductPreview,
    ProgressSnapshot,
    RunStatus,
)
from storewizard.utils.errors import ErrorHandler, GenerationCancelledError, GenerationError
from storewizard.utils.logger import LogContext, get_logger

logger = get_logger(__name__)

PreviewFn = Callable[[str], Awaitable[Union[ProductPreview, dict[str, Any]]]]
FinalFn = Callable[[str, str], Awaitable[Union[GenerationResult, dict[str, Any]]]]
ProgressListener = Callable[[ProgressSnapshot], None]
StatusListener = Callable[[GenerationRun], None]


# =============================================================================
# Constants and Configuration
# =============================================================================

PREVIEW_CHECKPOINT = Checkpoint(source=CheckpointSource.PREVIEW, min_stage=2, min_percent=40.0)
FINAL_CHECKPOINT = Checkpoint(source=CheckpointSource.FINAL, min_stage=MAX_STAGE, min_percent=100.0)


class PhaseWindow(NamedTuple):
    """Time window mapped linearly onto a percent range."""
    stage: int
    start_ms: float
    end_ms: Optional[float]  # None: open-ended, approached asymptotically
    start_percent: float
    end_percent: float


# =============================================================================
# Progress Interpolator
# =============================================================================

class ProgressInterpolator:
    """Maps elapsed time to a stage and percent."""

    PHASES = (
        PhaseWindow(1, 0, 15_000, 0.0, 40.0),
        PhaseWindow(2, 15_000, 35_000, 40.0, 70.0),
        PhaseWindow(3, 35_000, 50_000, 70.0, 90.0),
        PhaseWindow(4, 50_000, None, 90.0, 99.0),
    )

    STAGE_MESSAGES = {
        1: "Analyzing your product",
        2: "Writing your store content",
        3: "Designing your store sections",
        4: "Finishing your store",
    }

    def __init__(self, tail_time_constant_ms: float = 15_000.0):
        """
        Args:
            tail_time_constant_ms: How fast the open-ended last phase
                approaches its cap; after one constant it has covered ~63%.
        """
        self.tail_time_constant_ms = tail_time_constant_ms

    def interpolate(self, elapsed_ms: float) -> tuple[int, float]:
        """Return ``(stage, percent)`` for the elapsed time. Never reaches 100."""
        elapsed_ms = max(0.0, elapsed_ms)

        for phase in self.PHASES:
            if phase.end_ms is None:
                progress = 1.0 - math.exp(-(elapsed_ms - phase.start_ms) / self.tail_time_constant_ms)
                percent = phase.start_percent + (phase.end_percent - phase.start_percent) * progress
                return phase.stage, min(percent, phase.end_percent)
            if elapsed_ms < phase.end_ms:
                fraction = (elapsed_ms - phase.start_ms) / (phase.end_ms - phase.start_ms)
                percent = phase.start_percent + (phase.end_percent - phase.start_percent) * fraction
                return phase.stage, percent

        last = self.PHASES[-1]
        return last.stage, last.end_percent

    @classmethod
    def stage_message(cls, stage: int) -> str:
        return cls.STAGE_MESSAGES.get(stage, "")


# =============================================================================
# Run Handle
# =============================================================================

@dataclass
class _ActiveRun:
    """A run plus the event-loop resources it owns."""
    run: GenerationRun
    done: asyncio.Event = field(default_factory=asyncio.Event)
    sampler: Optional[asyncio.Task] = None
    preview_task: Optional[asyncio.Task] = None
    final_task: Optional[asyncio.Task] = None
    error: Optional[BaseException] = None

    def tasks(self) -> list[asyncio.Task]:
        return [t for t in (self.sampler, self.preview_task, self.final_task) if t is not None]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


# =============================================================================
# Orchestrator
# =============================================================================

class GenerationProgressOrchestrator:
    """
    Owns the ``GenerationRun`` of the wizard's progress screen.

    Example:
        >>> async with GenerationProgressOrchestrator(
        ...     preview_fn=previews.fetch_preview,
        ...     final_fn=generator.generate,
        ...     on_progress=render_bar,
        ... ) as orchestrator:
        ...     result = await orchestrator.run(url, language="fr")
    """

    def __init__(
        self,
        preview_fn: PreviewFn,
        final_fn: FinalFn,
        settings: Optional[Settings] = None,
        sample_interval_ms: Optional[float] = None,
        settle_ms: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        interpolator: Optional[ProgressInterpolator] = None,
        on_progress: Optional[ProgressListener] = None,
        on_status: Optional[StatusListener] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            preview_fn: Best-effort preview call, ``preview_fn(url)``
            final_fn: Authoritative generation call, ``final_fn(url, language)``
            settings: Application settings (uses defaults if not provided)
            sample_interval_ms: Period of the progress sampler; overrides settings
            settle_ms: How long the completed state is held; overrides settings
            clock: Monotonic clock in seconds
            interpolator: Phase interpolator
            on_progress: Listener receiving every displayed progress change
            on_status: Listener receiving the run on every terminal transition
        """
        self.settings = settings or get_settings()
        self.preview_fn = preview_fn
        self.final_fn = final_fn
        self.sample_interval_ms = (
            sample_interval_ms if sample_interval_ms is not None
            else self.settings.progress_sample_interval_ms
        )
        self.settle_ms = settle_ms if settle_ms is not None else self.settings.completion_settle_ms
        self.clock = clock
        self.interpolator = interpolator or ProgressInterpolator()
        self.on_progress = on_progress
        self.on_status = on_status

        self._token = 0
        self._active: Optional[_ActiveRun] = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        self.close()

    @property
    def run_token(self) -> int:
        """Token of the most recently started run (0 before the first run)."""
        return self._token

    @property
    def current_run(self) -> Optional[GenerationRun]:
        return self._active.run if self._active else None

    def snapshot(self) -> Optional[ProgressSnapshot]:
        if self._active is None:
            return None
        return self._snapshot(self._active.run)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, url: str, language: Optional[str] = None) -> GenerationRun:
        """
        Start a new run, abandoning any run still in flight.

        Must be called from code running on the event loop.
        """
        self.cancel()

        self._token += 1
        token = self._token
        run = GenerationRun(
            run_token=token,
            url=url,
            language=language or self.settings.default_language,
            started_at=self.clock(),
        )
        active = _ActiveRun(run=run)
        self._active = active

        logger.info("Generation run started", run_token=token, url=url, language=run.language)
        self._emit_progress(run)

        # Tasks copy the context, so every log line of the run carries its token
        with LogContext(run_token=token):
            active.sampler = asyncio.create_task(self._sample_loop(token))
            active.preview_task = asyncio.create_task(self._run_preview(token, url))
            active.final_task = asyncio.create_task(self._run_final(token, url, run.language))

        return run

    async def run(self, url: str, language: Optional[str] = None) -> GenerationResult:
        """
        Start a run and wait for its terminal status.

        Returns:
            The generation result once the settle delay has elapsed.

        Raises:
            GenerationError: The final call failed.
            GenerationCancelledError: The run was superseded or torn down.
        """
        run = self.start(url, language)
        active = self._active

        try:
            await active.done.wait()
        except asyncio.CancelledError:
            if self._active is active:
                self.cancel()
            raise

        if run.status == RunStatus.SUCCEEDED:
            return run.result
        if run.status == RunStatus.FAILED:
            if isinstance(active.error, GenerationError):
                raise active.error
            raise GenerationError(
                run.error or "Generation failed",
                details={"run_token": run.run_token, "category": run.error_category},
            ) from active.error
        raise GenerationCancelledError(run.run_token)

    def cancel(self) -> bool:
        """
        Abandon the current run: stop the sampler and in-flight calls.

        Returns:
            True when a running run was cancelled.
        """
        active = self._active
        if active is None or active.run.is_terminal:
            return False

        logger.info("Generation run cancelled", run_token=active.run.run_token)
        self._finish(active, RunStatus.CANCELLED)
        return True

    def close(self) -> None:
        """Tear down: nothing of the current run may fire afterwards."""
        self.cancel()

    # =========================================================================
    # Progress
    # =========================================================================

    def sample(self, run_token: Optional[int] = None) -> Optional[ProgressSnapshot]:
        """
        Run one interpolation tick for the current run.

        Returns:
            The displayed progress, or None when there is no running run.
        """
        active = self._current(run_token)
        if active is None:
            return None

        run = active.run
        elapsed_ms = (self.clock() - run.started_at) * 1000
        stage, percent = self.interpolator.interpolate(elapsed_ms)
        self._raise_to(run, stage, percent)
        return self._snapshot(run)

    def apply_checkpoint(self, checkpoint: Checkpoint, run_token: int) -> bool:
        """
        Raise the progress floor of the run identified by ``run_token``.

        Checkpoints for stale or finished runs are ignored. Applying the same
        or a lower checkpoint again has no effect.

        Returns:
            True when the floor was raised.
        """
        active = self._current(run_token)
        if active is None:
            logger.debug("Ignoring checkpoint for stale run", run_token=run_token, source=str(checkpoint.source))
            return False

        run = active.run
        raised = False
        if checkpoint.min_stage > run.floor_stage:
            run.floor_stage = checkpoint.min_stage
            raised = True
        if checkpoint.min_percent > run.floor_percent:
            run.floor_percent = checkpoint.min_percent
            raised = True

        if checkpoint.source == CheckpointSource.PREVIEW:
            run.preview_checkpoint_applied = True
        else:
            run.final_checkpoint_applied = True

        if raised:
            logger.debug(
                "Checkpoint applied",
                run_token=run_token,
                source=str(checkpoint.source),
                floor_stage=run.floor_stage,
                floor_percent=run.floor_percent,
            )
        self._raise_to(run, run.floor_stage, run.floor_percent)
        return raised

    # =========================================================================
    # Tasks
    # =========================================================================

    async def _sample_loop(self, token: int) -> None:
        interval = self.sample_interval_ms / 1000
        while self._current(token) is not None:
            await asyncio.sleep(interval)
            self.sample(token)

    async def _run_preview(self, token: int, url: str) -> None:
        try:
            payload = await self.preview_fn(url)
            preview = (
                payload if isinstance(payload, ProductPreview)
                else ProductPreview.model_validate(payload)
            )
        except Exception as e:
            logger.warning("Preview failed, continuing without checkpoint", run_token=token, error=str(e))
            return

        active = self._current(token)
        if active is None:
            logger.debug("Discarding preview of stale run", run_token=token)
            return
        if not preview.success:
            logger.info("Preview unavailable", run_token=token)
            return

        active.run.preview = preview
        self.apply_checkpoint(PREVIEW_CHECKPOINT, token)

    async def _run_final(self, token: int, url: str, language: str) -> None:
        start_time = time.time()
        try:
            payload = await self.final_fn(url, language)
            result = (
                payload if isinstance(payload, GenerationResult)
                else GenerationResult.model_validate(payload)
            )
        except Exception as e:
            self._fail(token, e)
            return

        active = self._current(token)
        if active is None:
            logger.debug("Discarding result of stale run", run_token=token)
            return

        self._stop_sampler(active)
        active.run.result = result
        self.apply_checkpoint(FINAL_CHECKPOINT, token)

        logger.info(
            "Generation completed",
            run_token=token,
            product_id=result.product_id,
            duration_ms=int((time.time() - start_time) * 1000),
        )

        await asyncio.sleep(self.settle_ms / 1000)

        if self._current(token) is None:
            return
        self._finish(active, RunStatus.SUCCEEDED)

    # =========================================================================
    # Internals
    # =========================================================================

    def _current(self, token: Optional[int]) -> Optional[_ActiveRun]:
        """The active run if it matches ``token`` and is still running."""
        active = self._active
        if active is None or active.run.status != RunStatus.RUNNING:
            return None
        if token is not None and active.run.run_token != token:
            return None
        return active

    def _raise_to(self, run: GenerationRun, stage: int, percent: float) -> None:
        new_stage = min(max(run.stage, stage, run.floor_stage), MAX_STAGE)
        new_percent = min(max(run.percent, percent, run.floor_percent), 100.0)
        if new_stage == run.stage and new_percent == run.percent:
            return
        run.stage = new_stage
        run.percent = new_percent
        self._emit_progress(run)

    def _fail(self, token: int, error: BaseException) -> None:
        active = self._current(token)
        if active is None:
            logger.debug("Discarding failure of stale run", run_token=token, error=str(error))
            return

        run = active.run
        active.error = error
        run.error = str(error) or error.__class__.__name__
        run.error_category = ErrorHandler.categorize_error(error)

        # Back to the start so a retry begins from an empty bar
        run.stage = MIN_STAGE
        run.percent = 0.0
        run.floor_stage = MIN_STAGE
        run.floor_percent = 0.0

        logger.error(
            "Generation failed",
            run_token=token,
            error=run.error,
            category=run.error_category,
        )
        self._emit_progress(run)
        self._finish(active, RunStatus.FAILED)

    def _stop_sampler(self, active: _ActiveRun) -> None:
        if active.sampler is not None and not active.sampler.done():
            active.sampler.cancel()

    def _finish(self, active: _ActiveRun, status: RunStatus) -> None:
        active.run.status = status

        current = _current_task()
        for task in active.tasks():
            if task is not current and not task.done():
                task.cancel()

        active.done.set()
        logger.info("Generation run finished", run_token=active.run.run_token, status=RunStatus(status).value)

        if self.on_status is not None:
            try:
                self.on_status(active.run)
            except Exception as cb_err:
                logger.warning(f"Status callback failed: {cb_err}")

    def _snapshot(self, run: GenerationRun) -> ProgressSnapshot:
        return ProgressSnapshot(
            run_token=run.run_token,
            stage=run.stage,
            percent=round(run.percent, 2),
            message=self.interpolator.stage_message(run.stage),
        )

    def _emit_progress(self, run: GenerationRun) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(self._snapshot(run))
        except Exception as cb_err:
            logger.warning(f"Progress callback failed: {cb_err}")
