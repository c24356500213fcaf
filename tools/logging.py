"""
Logging configuration for the hazard voice log service.

Console output goes through rich; an optional file handler writes one JSON
object per record so failed model outputs can be inspected later.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

#Attributes every LogRecord has; anything else came in through ``extra=``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    log_level: str = "INFO",
    log_file_path: Optional[Path] = None,
) -> None:
    """
    Configure the root logger.

    :param log_level: Logging level name
    :type log_level: str
    :param log_file_path: Optional path for a JSON-lines log file
    :type log_file_path: Path
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(console_handler)

    if log_file_path:
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # Third-party clients are chatty at INFO
    for noisy in ("httpx", "httpcore", "openai", "urllib3", "googleapiclient", "google"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={"log_level": log_level, "log_file": str(log_file_path) if log_file_path else None},
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    :param name: Logger name (usually ``__name__``)
    :type name: str
    :return: Logger instance
    """
    return logging.getLogger(name)
