"""Pipeline module for the Storefront Wizard generation screen."""

from storewizard.pipeline.orchestrator import (
    FINAL_CHECKPOINT,
    PREVIEW_CHECKPOINT,
    GenerationProgressOrchestrator,
    PhaseWindow,
    ProgressInterpolator,
)

__all__ = [
    "GenerationProgressOrchestrator",
    "ProgressInterpolator",
    "PhaseWindow",
    "PREVIEW_CHECKPOINT",
    "FINAL_CHECKPOINT",
]
