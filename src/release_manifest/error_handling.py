"""
Central error reporting for release-manifest.

Pipeline failures are still raised as exceptions; this module records them as
structured contexts, keeps per-category statistics and logs them before they
propagate.
"""

import logging
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .errors import (
    DirectoryListingError,
    FileReadError,
    FileWriteError,
    MalformedEntryError,
    ManifestError,
)


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Error categories for better classification."""

    FILESYSTEM = "FILESYSTEM"
    PARSING = "PARSING"
    CONFIGURATION = "CONFIGURATION"


@dataclass
class ErrorContext:
    """Structured error context information."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None
    traceback_info: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error context to dictionary for logging."""
        return {
            "level": self.level.value,
            "category": self.category.value,
            "message": self.message,
            "module": self.module,
            "function": self.function,
            "details": self.details,
            "exception_type": type(self.exception).__name__ if self.exception else None,
            "exception_message": str(self.exception) if self.exception else None,
            "traceback": self.traceback_info,
            "suggestions": self.suggestions,
        }


# Error callback type
ErrorCallback = Callable[[ErrorContext], None]

_LOG_LEVELS = {
    ErrorLevel.DEBUG: logging.DEBUG,
    ErrorLevel.INFO: logging.INFO,
    ErrorLevel.WARNING: logging.WARNING,
    ErrorLevel.ERROR: logging.ERROR,
    ErrorLevel.CRITICAL: logging.CRITICAL,
}

_SUGGESTIONS = {
    DirectoryListingError: [
        "Check that the --dir path exists and is a directory",
        "Verify read and execute permissions on the directory",
    ],
    FileReadError: [
        "Check file permissions",
        "Verify every manifest file is UTF-8 text",
    ],
    FileWriteError: [
        "Check write permissions on the source directory",
        "Verify there is free disk space",
    ],
    MalformedEntryError: [
        "Every manifest line must have the form name=version",
        "Remove blank lines and lines with more than one '='",
    ],
}


def categorize(error: ManifestError) -> ErrorCategory:
    """Map a pipeline exception to its error category."""
    if isinstance(error, MalformedEntryError):
        return ErrorCategory.PARSING
    return ErrorCategory.FILESYSTEM


def suggestions_for(error: ManifestError) -> List[str]:
    """Return remediation hints for a pipeline exception."""
    for error_type, suggestions in _SUGGESTIONS.items():
        if isinstance(error, error_type):
            return list(suggestions)
    return []


class ErrorHandler:
    """
    Centralized error handler for consistent error management.

    Provides logging, callbacks, and statistics for pipeline components.
    """

    def __init__(
        self,
        logger_name: str = "release_manifest",
        log_level: Optional[int] = None,
        enable_callbacks: bool = True,
    ):
        self.logger = logging.getLogger(logger_name)
        # Without an explicit level, keep whatever configure_logging set
        if log_level is not None:
            self.logger.setLevel(log_level)
        elif self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.WARNING)
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(handler)

        self.enable_callbacks = enable_callbacks
        self.error_callbacks: Dict[ErrorCategory, List[ErrorCallback]] = {}
        self.global_callbacks: List[ErrorCallback] = []
        self.error_stats: Dict[str, int] = {}

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ):
        """
        Register error callback.

        Args:
            callback: Function to call on errors
            category: Error category to filter, None for all errors
        """
        if not self.enable_callbacks:
            return

        if category is None:
            self.global_callbacks.append(callback)
        else:
            self.error_callbacks.setdefault(category, []).append(callback)

    def handle_error(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        """
        Record an error: build its context, count it, log it and notify callbacks.

        Returns:
            ErrorContext: The created error context
        """
        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            details=details or {},
            exception=exception,
            traceback_info=traceback.format_exc() if exception else None,
            suggestions=suggestions or [],
        )

        stat_key = f"{category.value}_{level.value}"
        self.error_stats[stat_key] = self.error_stats.get(stat_key, 0) + 1

        self._log_context(context)

        if self.enable_callbacks:
            for callback in self.error_callbacks.get(category, []) + self.global_callbacks:
                try:
                    callback(context)
                except Exception as cb_error:
                    self.logger.error(f"Error in callback: {cb_error}")

        return context

    def _log_context(self, context: ErrorContext) -> None:
        log_data = {
            "category": context.category.value,
            "module": context.module,
            "function": context.function,
            "details": context.details,
        }
        if context.exception:
            log_data["exception"] = type(context.exception).__name__
        if context.suggestions:
            log_data["suggestions"] = context.suggestions

        self.logger.log(_LOG_LEVELS[context.level], f"{context.message} | {log_data}")

    def warning(
        self,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        **kwargs,
    ) -> ErrorContext:
        """Handle warning level error."""
        return self.handle_error(
            ErrorLevel.WARNING, category, message, module, function, **kwargs
        )

    def error(
        self,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        **kwargs,
    ) -> ErrorContext:
        """Handle error level error."""
        return self.handle_error(
            ErrorLevel.ERROR, category, message, module, function, **kwargs
        )

    def get_error_stats(self) -> Dict[str, int]:
        """Get error statistics."""
        return self.error_stats.copy()


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(
    log_level: int = logging.WARNING,
    enable_callbacks: bool = True,
    logger_name: str = "release_manifest",
) -> ErrorHandler:
    """Replace the global error handler with a freshly configured one."""
    global _global_error_handler
    _global_error_handler = ErrorHandler(logger_name, log_level, enable_callbacks)
    return _global_error_handler


def log_stage_error(
    error: ManifestError,
    stage: str,
    file_path: Optional[str] = None,
) -> ErrorContext:
    """
    Convenience function for reporting a failed pipeline stage.

    Args:
        error: The exception raised by the stage
        stage: Name of the stage function that failed
        file_path: File the stage was working on, if any
    """
    details: Dict[str, Any] = {"stage": stage}
    if file_path is not None:
        details["file"] = Path(file_path).name
    if error.entry_point:
        details["entry_point"] = error.entry_point
    if isinstance(error, MalformedEntryError):
        details["line"] = error.line

    return get_error_handler().error(
        categorize(error),
        str(error),
        "stages",
        stage,
        exception=error,
        details=details,
        suggestions=suggestions_for(error),
    )
