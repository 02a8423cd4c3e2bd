"""Structured logging configuration for approval audit trails."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Create module-level logger
logger = logging.getLogger("safegate")

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class StructuredFormatter(logging.Formatter):
    """Single-line structured log formatter with extra fields appended."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured output."""
        timestamp = datetime.now(timezone.utc).isoformat()
        entry = f"[{timestamp}] [{record.levelname}] {record.name}: {record.getMessage()}"

        extra_fields: dict[str, Any] = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            entry += f" | {extra_fields}"

        if record.exc_info:
            entry += "\n" + self.formatException(record.exc_info)

        return entry


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
) -> None:
    """Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger.setLevel(log_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.debug("Logging configured", extra={"level": level, "log_file": str(log_file)})


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for the specified module.

    Args:
        name: Module name (will be prefixed with 'safegate.')

    Returns:
        Configured logger instance
    """
    return logging.getLogger(f"safegate.{name}")


# Audit logger for approval lifecycle events
audit_logger = get_logger("audit")


def log_approval_event(
    event_type: str,
    request_id: str,
    **details: Any,
) -> None:
    """Log an approval lifecycle event for audit purposes.

    Args:
        event_type: Type of event (CREATED, APPROVED, REJECTED, EXPIRED, EXECUTED, ...)
        request_id: Approval request identifier
        **details: Additional event details
    """
    audit_logger.info(
        f"{event_type} | request={request_id}",
        extra={"event_type": event_type, "request_id": request_id, **details},
    )
