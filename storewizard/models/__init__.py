"""Data models module for the Storefront Wizard core."""

from storewizard.models.schemas import (
    # Base Models
    BaseModel,

    # Enums
    UrlKind,
    ValidationStatus,
    RunStatus,
    CheckpointSource,
    TERMINAL_RUN_STATUSES,

    # URL Engine Models
    ClassificationResult,
    ValidationState,

    # Collaborator Payloads
    ProductPreview,
    GenerationResult,

    # Progress Models
    Checkpoint,
    ProgressSnapshot,
    GenerationRun,
)

__all__ = [
    "BaseModel",
    "UrlKind",
    "ValidationStatus",
    "RunStatus",
    "CheckpointSource",
    "TERMINAL_RUN_STATUSES",
    "ClassificationResult",
    "ValidationState",
    "ProductPreview",
    "GenerationResult",
    "Checkpoint",
    "ProgressSnapshot",
    "GenerationRun",
]
