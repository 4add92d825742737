"""JSON structured logging for readyup.

Provides structured logging with run IDs, severity levels, and contextual metadata.
Uses python-json-logger for JSON formatting. Records go to stderr so the
CLI's human-readable output on stdout stays clean.
"""

import logging
import sys
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from packages.common.config import get_config


class RunIdFilter(logging.Filter):
    """Logging filter that injects the coordination run ID into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject run ID into the log record.

        Args:
            record: The log record to modify.

        Returns:
            bool: Always True (doesn't filter out records).
        """
        # Import here to avoid circular dependency
        from packages.common.tracing import get_run_id

        record.run_id = get_run_id()
        return True


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with additional fields.

    Adds timestamp, level, module, and run_id to all log records.
    """

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = record.created
        log_record["level"] = record.levelname
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        if getattr(record, "run_id", None) is not None:
            log_record["run_id"] = record.run_id


def setup_logging(level: str | None = None) -> None:
    """Configure JSON structured logging for the application.

    Sets up:
    - JSON formatter with run IDs
    - Console handler writing to stderr
    - Log level from config or parameter

    Args:
        level: Optional log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If not provided, uses READYUP_LOG_LEVEL from config.

    Example:
        >>> setup_logging("DEBUG")
        >>> logger = get_logger(__name__)
        >>> logger.info("Service healthy", extra={"service": "postgres"})
    """
    config = get_config()
    log_level = (level or config.log_level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        CustomJsonFormatter("%(timestamp)s %(level)s %(module)s %(function)s %(message)s")
    )
    console_handler.addFilter(RunIdFilter())

    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module.

    Args:
        name: The logger name (typically __name__ from the calling module).

    Returns:
        logging.Logger: Configured logger instance.
    """
    return logging.getLogger(name)


# Export public API
__all__ = ["CustomJsonFormatter", "RunIdFilter", "get_logger", "setup_logging"]
