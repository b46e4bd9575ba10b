"""Centralized logging configuration for the ledger."""

import json
import logging
import logging.handlers
from pathlib import Path
from typing import Any, Optional

from timeledger.utils.logging_utils import LedgerContextFilter

# Attributes every LogRecord carries; anything else came from extra= or LogContext
_RECORD_ATTRIBUTES = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Extra fields (from ``extra=`` or ``LogContext``) are emitted at the top
    level. Values json cannot encode natively, such as Decimal amounts and
    dates, are written as strings.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class LoggingConfig:
    """
    Configuration for centralized logging.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type ('standard' or 'json')
        log_file: Path to a rotating log file, or None for console only
        enable_console: Enable console (stderr) output
        max_file_size: Maximum log file size in bytes before rotation
        backup_count: Number of rotated files to keep
    """

    VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    VALID_FORMATS = {"standard", "json"}

    def __init__(
        self,
        log_level: str = "INFO",
        log_format: str = "standard",
        log_file: Optional[str] = None,
        enable_console: bool = True,
        max_file_size: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ):
        """
        Raises:
            ValueError: If the level or format is not recognised
        """
        if log_level.upper() not in self.VALID_LEVELS:
            raise ValueError(
                f"Invalid log level: {log_level}. "
                f"Must be one of {', '.join(sorted(self.VALID_LEVELS))}"
            )
        if log_format not in self.VALID_FORMATS:
            raise ValueError(
                f"Invalid log format: {log_format}. "
                f"Must be one of {', '.join(sorted(self.VALID_FORMATS))}"
            )

        self.log_level = log_level.upper()
        self.log_format = log_format
        self.log_file = log_file
        self.enable_console = enable_console
        self.max_file_size = max_file_size
        self.backup_count = backup_count

    @classmethod
    def from_settings(cls, settings: Any) -> "LoggingConfig":
        """
        Build logging configuration from a ``LedgerConfig``.

        Args:
            settings: Loaded ledger settings

        Returns:
            LoggingConfig instance
        """
        return cls(
            log_level=settings.log_level,
            log_format=settings.log_format,
            log_file=settings.log_file,
        )


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    return logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def configure_logging(config: LoggingConfig) -> None:
    """
    Configure the root logger from a LoggingConfig.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        config: LoggingConfig instance
    """
    root_logger = logging.getLogger()
    reset_logging()

    level = getattr(logging, config.log_level)
    root_logger.setLevel(level)

    formatter = _build_formatter(config.log_format)
    context_filter = LedgerContextFilter()

    handlers = []
    if config.enable_console:
        handlers.append(logging.StreamHandler())
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=str(log_path),
                maxBytes=config.max_file_size,
                backupCount=config.backup_count,
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)


def reset_logging() -> None:
    """Remove all root handlers and restore the default WARNING level."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.WARNING)
