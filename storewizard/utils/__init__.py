"""Utils module for the Storefront Wizard."""

from storewizard.utils.errors import (
    AppError,
    ConfigurationError,
    ErrorHandler,
    GenerationCancelledError,
    GenerationError,
    PreviewError,
)
from storewizard.utils.formatters import StatusFormatter
from storewizard.utils.logger import LogContext, get_logger, setup_logging
from storewizard.utils.timers import PendingTimer, TimerSlot

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "StatusFormatter",
    "PendingTimer",
    "TimerSlot",
    "ErrorHandler",
    "AppError",
    "ConfigurationError",
    "PreviewError",
    "GenerationError",
    "GenerationCancelledError",
]
