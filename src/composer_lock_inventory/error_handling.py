"""
Error handling for composer-lock-inventory.

Defines the exception taxonomy raised by the lock-file parser and analyzer,
plus a centralized handler that turns recovered failures into structured,
single-line diagnostics with optional callbacks.
"""

import logging
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ComposerLockError(Exception):
    """Base class for all errors raised while analyzing a lock file."""


class IOFault(ComposerLockError):
    """The artifact stream could not be opened or read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class FormatError(ComposerLockError):
    """
    The lock file is not well-formed.

    Raised for unparsable JSON and for recognized package objects that are
    missing a mandatory field. ``fragment`` holds the offending text so the
    diagnostic can point at it.
    """

    def __init__(self, message: str, fragment: str = ""):
        super().__init__(message)
        self.fragment = fragment

    def __str__(self) -> str:
        message = super().__str__()
        if self.fragment:
            return f"{message} near: {self.fragment}"
        return message


class ConfigurationFault(ComposerLockError):
    """The analyzer cannot function at all, e.g. its hash primitive is missing."""


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Error categories for better classification."""

    PARSING = "PARSING"
    FILESYSTEM = "FILESYSTEM"
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
        }


class SecureLogger:
    """Logger that renders an ErrorContext as one diagnostic line."""

    def __init__(
        self, name: str, level: int = logging.WARNING, log_format: str = DEFAULT_LOG_FORMAT
    ):
        """
        Initialize the logger.

        Args:
            name: Logger name
            level: Logging level
            log_format: Format string for the stderr handler
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        formatter = logging.Formatter(log_format)

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            self.logger.addHandler(handler)
        for handler in self.logger.handlers:
            handler.setFormatter(formatter)

    def log_error_context(self, context: ErrorContext):
        """
        Log error context with appropriate level.

        Args:
            context: Error context to log
        """
        log_data = {
            "category": context.category.value,
            "module": context.module,
            "function": context.function,
            "details": context.details,
        }

        if context.exception:
            log_data["exception"] = type(context.exception).__name__

        log_message = f"{context.message} | {log_data}"

        if context.level == ErrorLevel.DEBUG:
            self.logger.debug(log_message)
        elif context.level == ErrorLevel.INFO:
            self.logger.info(log_message)
        elif context.level == ErrorLevel.WARNING:
            self.logger.warning(log_message)
        elif context.level == ErrorLevel.ERROR:
            self.logger.error(log_message)
        elif context.level == ErrorLevel.CRITICAL:
            self.logger.critical(log_message)


# Error callback type
ErrorCallback = Callable[[ErrorContext], None]


class ErrorHandler:
    """
    Centralized error handler for consistent error management.

    Provides logging, callbacks, and per-category statistics for the
    failures the analyzer recovers from.
    """

    def __init__(
        self,
        logger_name: str = "composer_lock_inventory",
        log_level: int = logging.WARNING,
        enable_callbacks: bool = True,
        log_format: str = DEFAULT_LOG_FORMAT,
    ):
        self.logger = SecureLogger(logger_name, log_level, log_format)
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
    ) -> ErrorContext:
        """
        Handle an error with structured logging and callbacks.

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
        )

        stat_key = f"{category.value}_{level.value}"
        self.error_stats[stat_key] = self.error_stats.get(stat_key, 0) + 1

        self.logger.log_error_context(context)

        if self.enable_callbacks:
            for callback in self.error_callbacks.get(category, []):
                try:
                    callback(context)
                except Exception as cb_error:
                    # Callback failures must not abort the analysis
                    self.logger.logger.error(f"Error in callback: {cb_error}")

            for callback in self.global_callbacks:
                try:
                    callback(context)
                except Exception as cb_error:
                    self.logger.logger.error(f"Error in global callback: {cb_error}")

        return context

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

    def reset_stats(self):
        """Reset error statistics."""
        self.error_stats.clear()


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
    logger_name: str = "composer_lock_inventory",
    log_format: str = DEFAULT_LOG_FORMAT,
) -> ErrorHandler:
    """
    Setup global error handling configuration.

    Args:
        log_level: Logging level
        enable_callbacks: Whether to enable callbacks
        logger_name: Logger name
        log_format: Format string for diagnostics

    Returns:
        ErrorHandler: Configured error handler
    """
    global _global_error_handler
    _global_error_handler = ErrorHandler(
        logger_name, log_level, enable_callbacks, log_format
    )
    return _global_error_handler


def log_skipped_artifact(
    message: str,
    module: str,
    function: str,
    file_path: str,
    exception: ComposerLockError,
) -> ErrorContext:
    """
    Report an artifact the analyzer gave up on.

    IOFault is filed under FILESYSTEM, ConfigurationFault (a failing hash
    function) under CONFIGURATION, everything else under PARSING.
    """
    if isinstance(exception, IOFault):
        category = ErrorCategory.FILESYSTEM
    elif isinstance(exception, ConfigurationFault):
        category = ErrorCategory.CONFIGURATION
    else:
        category = ErrorCategory.PARSING
    details: Dict[str, Any] = {"file_path": file_path}
    fragment = getattr(exception, "fragment", "")
    if fragment:
        details["fragment"] = fragment

    return get_error_handler().warning(
        category,
        message,
        module,
        function,
        details=details,
        exception=exception,
    )
