"""
Pydantic models and schemas for the Storefront Wizard core.

This module defines the data structures shared by the URL engine and the
progress orchestrator, ensuring type safety, validation, and serialization
consistency.

Models:
    - ClassificationResult: Classifier output
    - ValidationState: Per-field validation status
    - Checkpoint: Progress floor pushed by the preview/final calls
    - GenerationRun: State of one generation attempt
    - ProgressSnapshot: What the progress bar displays
    - ProductPreview / GenerationResult: Collaborator payloads
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel as PydanticBaseModel,
    ConfigDict,
    Field,
    field_serializer,
    model_validator,
)


# =============================================================================
# Base Configuration
# =============================================================================

class BaseModel(PydanticBaseModel):
    """Base model with common configuration for all schemas."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_json(self, **kwargs) -> str:
        """Serialize model to JSON string."""
        return self.model_dump_json(indent=2, **kwargs)

    def to_dict(self, **kwargs) -> dict[str, Any]:
        """Serialize model to dictionary."""
        return self.model_dump(**kwargs)

    @classmethod
    def from_json(cls, json_str: str):
        """Deserialize model from JSON string."""
        return cls.model_validate_json(json_str)


# =============================================================================
# Enums
# =============================================================================

class UrlKind(str, Enum):
    """Product-link dialects recognized by the classifier."""
    ALIEXPRESS = "aliexpress"
    AMAZON = "amazon"
    SHOPIFY = "shopify"
    UNKNOWN = "unknown"


class ValidationStatus(str, Enum):
    """Status of the debounced validation of one input field."""
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"


class RunStatus(str, Enum):
    """Status of a generation run."""
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CheckpointSource(str, Enum):
    """Which call produced a checkpoint."""
    PREVIEW = "preview"
    FINAL = "final"


TERMINAL_RUN_STATUSES = {RunStatus.SUCCEEDED, RunStatus.FAILED, RunStatus.CANCELLED}

MIN_STAGE = 1
MAX_STAGE = 4


# =============================================================================
# URL Engine Models
# =============================================================================

class ClassificationResult(BaseModel):
    """
    Result of classifying a raw string.

    Recomputed on every input change; never cached by anything but the
    exact input string.
    """

    model_config = ConfigDict(frozen=True)

    kind: UrlKind = Field(default=UrlKind.UNKNOWN, description="Detected dialect")
    matched_pattern: Optional[str] = Field(
        default=None,
        description="Identifier of the rule that matched",
    )
    captured_id: Optional[str] = Field(
        default=None,
        description="Item number, ASIN-equivalent token or product slug",
    )

    @property
    def is_known(self) -> bool:
        return self.kind != UrlKind.UNKNOWN


class ValidationState(BaseModel):
    """Validation status of one input field. Only the validator produces it."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=False)

    status: ValidationStatus = ValidationStatus.IDLE
    kind: UrlKind = UrlKind.UNKNOWN
    message: str = ""

    @model_validator(mode="after")
    def check_valid_has_kind(self) -> "ValidationState":
        """A valid state always names its dialect."""
        if self.status == ValidationStatus.VALID and self.kind == UrlKind.UNKNOWN:
            raise ValueError("A valid URL cannot be of unknown kind")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in (ValidationStatus.VALID, ValidationStatus.INVALID)


# =============================================================================
# Collaborator Payloads
# =============================================================================

class ProductPreview(BaseModel):
    """Best-effort product preview shown while the store is generated."""

    success: bool = False
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = None


class GenerationResult(BaseModel):
    """Output of the authoritative generation call."""

    product_id: str = Field(..., alias="productId", min_length=1)
    content: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Progress Models
# =============================================================================

class Checkpoint(BaseModel):
    """A floor that can only raise the displayed stage and percent."""

    model_config = ConfigDict(frozen=True)

    source: CheckpointSource
    min_stage: int = Field(..., ge=MIN_STAGE, le=MAX_STAGE)
    min_percent: float = Field(..., ge=0.0, le=100.0)


class ProgressSnapshot(BaseModel):
    """What the display surface receives on every progress tick."""

    model_config = ConfigDict(frozen=True)

    run_token: int
    stage: int = Field(..., ge=MIN_STAGE, le=MAX_STAGE)
    percent: float = Field(..., ge=0.0, le=100.0)
    message: str = ""


class GenerationRun(BaseModel):
    """
    State of one generation attempt.

    Owned exclusively by the orchestrator; other components only supply
    checkpoint signals.
    """

    run_token: int = Field(..., ge=1)
    url: str
    language: str = "en"
    started_at: float = Field(..., description="Monotonic clock reading at start (seconds)")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stage: int = Field(default=MIN_STAGE, ge=MIN_STAGE, le=MAX_STAGE)
    percent: float = Field(default=0.0, ge=0.0, le=100.0)
    floor_stage: int = Field(default=MIN_STAGE, ge=MIN_STAGE, le=MAX_STAGE)
    floor_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    preview_checkpoint_applied: bool = False
    final_checkpoint_applied: bool = False
    status: RunStatus = RunStatus.RUNNING
    error: Optional[str] = None
    error_category: Optional[str] = None
    preview: Optional[ProductPreview] = None
    result: Optional[GenerationResult] = None

    @field_serializer("created_at")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to ISO format string."""
        if value.tzinfo is None:
            return value.isoformat() + "Z"
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

    @property
    def is_terminal(self) -> bool:
        return RunStatus(self.status) in TERMINAL_RUN_STATUSES
