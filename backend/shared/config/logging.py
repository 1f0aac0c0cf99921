"""
Centralized structured logging for the backend.
Uses Python's standard logging with JSON formatting for production.

Integrates the correlation id so that every record emitted while a request is
being served can be matched with the shielded error ids of the service layer.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs logs in a format easily parseable by log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            log_data["request_id"] = request_id

        # Add extra fields if present
        if hasattr(record, "extra_data") and record.extra_data:
            log_data["data"] = record.extra_data

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add source location in debug mode
        if settings.debug:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter for development.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%H:%M:%S")

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            request_id_str = f"{self.DIM}[{request_id[:8]}]{self.RESET} "
        else:
            request_id_str = ""

        message = (
            f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
            f"{request_id_str}{record.name}: {record.getMessage()}"
        )

        if hasattr(record, "extra_data") and record.extra_data:
            data_str = " | ".join(f"{k}={v}" for k, v in record.extra_data.items())
            message += f" ({data_str})"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class StructuredLogger(logging.Logger):
    """
    Custom logger that supports structured data.

    Keyword arguments other than ``exc_info`` are attached to the record as
    ``extra_data`` and rendered by the formatters above.
    """

    def _log_with_data(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        **kwargs: Any,
    ) -> None:
        """Log with optional structured data."""
        if not self.isEnabledFor(level):
            return
        if extra is None:
            extra = {}
        extra["extra_data"] = kwargs if kwargs else None
        super()._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


# Set custom logger class
logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """
    Configure logging for the application.
    Call this once at application startup.
    """
    # Import here to avoid circular imports
    from shared.infrastructure.correlation import CorrelationIdFilter

    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())

    if settings.environment == "production":
        formatter = StructuredFormatter()
    else:
        formatter = DevelopmentFormatter()

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )


def get_logger(name: str) -> StructuredLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from shared.config.logging import get_logger
        logger = get_logger(__name__)

        logger.info("Entity created", entity="Book", id=123)
        logger.error("Failed to commit", entity="Book", exc_info=True)
    """
    logger = logging.getLogger(name)
    if not isinstance(logger, StructuredLogger):
        # Loggers created before setLoggerClass() keep the plain class
        logger.__class__ = StructuredLogger
    return logger  # type: ignore[return-value]


# Pre-configured loggers for common modules
crud_api_logger = get_logger("crud_api")
shield_logger = get_logger("crud_api.shield")
