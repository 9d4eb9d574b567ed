"""
Structured logging configuration for release-manifest.

Emits one JSON object per event so pipeline runs can be audited by release
tooling.
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
        "message",
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


class PipelineLogger:
    """Structured logger for pipeline events."""

    def __init__(self, name: str = "release_manifest.events"):
        self.logger = logging.getLogger(name)
        self.logger.propagate = False
        self._setup_logger()
        self.run_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        """Setup logger with structured formatting."""
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)

    def use_json(self, enabled: bool) -> None:
        """Switch between JSON and plain text output."""
        formatter = (
            StructuredFormatter()
            if enabled
            else logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        for handler in self.logger.handlers:
            handler.setFormatter(formatter)

    def set_run_context(
        self,
        run_id: Optional[str] = None,
        source_dir: Optional[str] = None,
        version: Optional[str] = None,
    ) -> None:
        """Set run context for logging."""
        self.run_context = {}
        if run_id:
            self.run_context["run_id"] = run_id
        if source_dir:
            self.run_context["source_dir"] = source_dir
        if version:
            self.run_context["version"] = version

    def clear_run_context(self) -> None:
        self.run_context.clear()

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.run_context, **kwargs}
        self.logger.log(level, event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log(logging.INFO, event_type, **kwargs)

    def error(self, event_type: str, **kwargs) -> None:
        self._log(logging.ERROR, event_type, **kwargs)


# Global logger instance
_pipeline_logger = PipelineLogger()


def get_pipeline_logger() -> PipelineLogger:
    """Get pipeline operations logger."""
    return _pipeline_logger


def log_run_start(run_id: str, source_dir: str, version: str) -> None:
    """Log run start event and remember the run context."""
    logger = get_pipeline_logger()
    logger.set_run_context(run_id, source_dir, version)
    logger.info("run_started")


def log_stage_complete(stage: str, line_count: int, artifact: str) -> None:
    """Log the completion of one pipeline stage."""
    get_pipeline_logger().info(
        "stage_completed", stage=stage, line_count=line_count, artifact=artifact
    )


def log_run_complete(duration_ms: int, entry_count: int, manifest_path: str) -> None:
    """Log run completion event and clear the run context."""
    logger = get_pipeline_logger()
    logger.info(
        "run_completed",
        duration_ms=duration_ms,
        entry_count=entry_count,
        manifest_path=manifest_path,
    )
    logger.clear_run_context()


def log_run_failed(stage: str, error: Exception) -> None:
    """Log a failed run and clear the run context."""
    logger = get_pipeline_logger()
    logger.error(
        "run_failed",
        stage=stage,
        error_type=type(error).__name__,
        error=str(error),
    )
    logger.clear_run_context()


def configure_logging(log_level: str = "WARNING", enable_json: bool = True) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    _pipeline_logger.logger.setLevel(level)
    _pipeline_logger.use_json(enable_json)
    logging.getLogger("release_manifest").setLevel(level)
