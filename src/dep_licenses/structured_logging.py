"""
Structured logging configuration for dep-licenses.

Provides consistent, machine-readable logging for dependency discovery so
that runs over large projects can be audited after the fact.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRIBUTES = {
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
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRIBUTES:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class SourceLogger:
    """Structured logger for dependency discovery events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"dep_licenses.{name}")
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Setup logger with structured formatting."""
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            # kept out of the dep_licenses error log
            self.logger.propagate = False

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **kwargs}
        self.logger.log(level, event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        """Log info level event."""
        self._log(logging.INFO, event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        """Log warning level event."""
        self._log(logging.WARNING, event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        """Log debug level event."""
        self._log(logging.DEBUG, event_type, **kwargs)


# Global logger instances
_sources_logger = SourceLogger("sources")
_shell_logger = SourceLogger("shell")


def get_sources_logger() -> SourceLogger:
    """Get dependency source logger."""
    return _sources_logger


def get_shell_logger() -> SourceLogger:
    """Get external command logger."""
    return _shell_logger


def log_source_query_started(source_type: str, root: str) -> None:
    get_sources_logger().info("source_query_started", source_type=source_type, root=root)


def log_source_query_completed(
    source_type: str, dependency_count: int, duration_ms: Optional[int] = None
) -> None:
    """Log the number of records a source produced."""
    log_data: Dict[str, Any] = {
        "source_type": source_type,
        "dependency_count": dependency_count,
    }
    if duration_ms is not None:
        log_data["duration_ms"] = duration_ms
    get_sources_logger().info("source_query_completed", **log_data)


def log_dependency_ignored(source_type: str, name: str) -> None:
    get_sources_logger().debug("dependency_ignored", source_type=source_type, package_name=name)


def log_dependency_path_missing(source_type: str, name: str, path: str) -> None:
    get_sources_logger().warning(
        "dependency_path_missing", source_type=source_type, package_name=name, path=path
    )


def log_shell_command(command: str, cwd: Optional[str] = None) -> None:
    get_shell_logger().debug("shell_command_started", command=command, cwd=cwd)


def log_shell_command_failed(command: str, returncode: Optional[int]) -> None:
    get_shell_logger().warning(
        "shell_command_failed", command=command, returncode=returncode
    )


def configure_logging(
    log_level: str = "WARNING",
    enable_json: bool = True,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter: logging.Formatter = (
        StructuredFormatter() if enable_json else logging.Formatter(log_format)
    )

    for source_logger in [_sources_logger, _shell_logger]:
        source_logger.logger.setLevel(level)
        for handler in source_logger.logger.handlers:
            handler.setFormatter(formatter)
