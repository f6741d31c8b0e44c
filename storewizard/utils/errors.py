"""
Error taxonomy and centralized error categorization.

Classification ambiguity and partial patterns are never exceptions: they
surface as validation messages. Exceptions only cover the collaborators
(preview fetch, store generation) and configuration problems.
"""

import asyncio
from typing import Any, Optional

import httpx

# =============================================================================
# Custom Exceptions
# =============================================================================

class AppError(Exception):
    """Base application exception."""
    pass

class ConfigurationError(AppError):
    """Settings could not be loaded from the environment."""
    pass

class PreviewError(AppError):
    """Raised by the preview collaborator; always recovered by the orchestrator."""
    pass


class GenerationError(AppError):
    """Fatal failure of the authoritative generation call."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class GenerationCancelledError(AppError):
    """The run was superseded by a newer run or torn down."""

    def __init__(self, run_token: int):
        super().__init__(f"Generation run {run_token} was cancelled")
        self.run_token = run_token


# =============================================================================
# Error Handler
# =============================================================================

class ErrorHandler:
    """Centralized error categorization."""

    RETRYABLE = frozenset({"NETWORK_ERROR", "TIMEOUT_ERROR", "RATE_LIMIT_ERROR", "SERVER_ERROR"})

    @staticmethod
    def categorize_error(error: BaseException) -> str:
        """Categorize errors for logging and for the failed run record."""
        if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
            return "TIMEOUT_ERROR"
        if isinstance(error, (httpx.NetworkError, ConnectionError)):
            return "NETWORK_ERROR"
        if isinstance(error, GenerationError) and error.status_code is not None:
            if error.status_code == 429:
                return "RATE_LIMIT_ERROR"
            if error.status_code in (401, 403):
                return "AUTHORIZATION_ERROR"
            if error.status_code >= 500:
                return "SERVER_ERROR"
            return "REQUEST_ERROR"
        if isinstance(error, ConfigurationError):
            return "CONFIGURATION_ERROR"
        if isinstance(error, (ValueError, TypeError)):
            return "VALIDATION_ERROR"

        # Check string content
        err_str = str(error).lower()
        if "rate limit" in err_str: return "RATE_LIMIT_ERROR"
        if "timeout" in err_str or "timed out" in err_str: return "TIMEOUT_ERROR"
        if "connection" in err_str: return "NETWORK_ERROR"

        return "UNKNOWN_ERROR"

    @classmethod
    def is_retryable(cls, error: BaseException) -> bool:
        """Whether offering the user a manual retry makes sense."""
        return cls.categorize_error(error) in cls.RETRYABLE
