"""
Structured logging configuration for composer-lock-inventory.

Emits machine-readable analysis events (one JSON object per line) so an
inventory run can be audited alongside the host engine's own logs.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
    ]
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": getattr(record, "component", record.name),
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)



class AnalysisLogger:
    """
    Structured logger for analysis events.

    Holds no per-artifact state: every event carries its own analyzer and
    file_path, so analyses running in parallel can share one instance.
    """

    def __init__(self, name: str = "composer_lock_inventory.events"):
        self.logger = logging.getLogger(name)
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Setup logger with structured formatting."""
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def _log(
        self,
        level: str,
        event_type: str,
        analyzer: Optional[str] = None,
        file_path: Optional[str] = None,
        **kwargs,
    ) -> None:
        log_data: Dict[str, Any] = {"event_type": event_type}
        if analyzer:
            log_data["analyzer"] = analyzer
        if file_path:
            log_data["file_path"] = file_path
        log_data.update(kwargs)
        getattr(self.logger, level.lower())(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        """Log info level event."""
        self._log("info", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        """Log debug level event."""
        self._log("debug", event_type, **kwargs)


_analysis_logger = AnalysisLogger()


def get_analysis_logger() -> AnalysisLogger:
    """Get analysis events logger."""
    return _analysis_logger


def log_analysis_start(analyzer: str, file_path: str) -> None:
    """Log the start of one artifact's analysis."""
    get_analysis_logger().info(
        "analysis_started", analyzer=analyzer, file_path=file_path
    )


def log_analysis_complete(
    analyzer: str,
    file_path: str,
    dependencies_added: int,
    placeholder_removed: bool,
    duration_ms: int,
) -> None:
    """Log analysis completion event."""
    get_analysis_logger().info(
        "analysis_completed",
        analyzer=analyzer,
        file_path=file_path,
        dependencies_added=dependencies_added,
        placeholder_removed=placeholder_removed,
        analysis_duration_ms=duration_ms,
    )


def log_dependency_added(
    analyzer: str, file_path: str, name: str, version: str, dependency_path: str
) -> None:
    """Log a dependency record handed to the engine."""
    get_analysis_logger().debug(
        "dependency_added",
        analyzer=analyzer,
        file_path=file_path,
        package_name=name,
        package_version=version,
        dependency_path=dependency_path,
    )


def log_placeholder_removed(
    analyzer: str, file_path: str, display_file_name: str
) -> None:
    get_analysis_logger().debug(
        "placeholder_removed",
        analyzer=analyzer,
        file_path=file_path,
        display_file_name=display_file_name,
    )


def log_artifact_skipped(
    analyzer: str, file_path: str, reason: str, error_type: str
) -> None:
    """Log an artifact the analyzer skipped."""
    get_analysis_logger().info(
        "artifact_skipped",
        analyzer=analyzer,
        file_path=file_path,
        reason=reason,
        error_type=error_type,
    )


def configure_logging(log_level: str = "WARNING", enable_json: bool = True) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    package_logger = logging.getLogger("composer_lock_inventory")
    package_logger.setLevel(level)

    _analysis_logger.logger.setLevel(level)
    _analysis_logger.logger.disabled = not enable_json
