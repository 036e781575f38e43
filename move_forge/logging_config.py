"""
move_forge/logging_config.py
Structured logging setup.

All logs are JSON formatted for aggregation into monitoring systems.
Follows: Single Responsibility Principle
"""

import json
import logging
from logging import LogRecord
from typing import Any, Optional

from shared.config import SharedConfig


class StructuredFormatter(logging.Formatter):
    """Format logs as JSON for aggregation systems (ELK, Splunk, etc.)."""

    CONTEXT_FIELDS = ("simulation_id", "request_id", "artifact_type", "status")

    def format(self, record: LogRecord) -> str:
        """Convert log record to JSON."""
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Custom context fields passed via extra=
        for name in self.CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data, default=str)


def setup_logging(level: Optional[str] = None, log_to_file: bool = True) -> None:
    """
    Initialize structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            defaults to SharedConfig.LOG_LEVEL
        log_to_file: Also write every level to SharedConfig.LOG_FILE
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level or SharedConfig.LOG_LEVEL)

    # Console handler (JSON formatted, INFO and above)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    if log_to_file:
        SharedConfig.initialize_dirs()
        file_handler = logging.FileHandler(SharedConfig.LOG_FILE)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with consistent naming.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
