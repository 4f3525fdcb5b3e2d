"""
Structured logging utilities for Kisan Sync.

One dictConfig for every entry point (CLI, seed script, HTTP server), so the
synchronized views, the change feed and the content generator all log
through the same handler. Human-readable lines by default; one JSON object
per line with `LOG_JSON=true`.

Modules log structured context through `extra=`:

    log = get_logger(__name__)
    log.warning("Bulk load failed", extra={"table": "recipes", "error": str(exc)})

With JSON output every `extra` key becomes a top-level field.
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}

# Third-party loggers that are too chatty at INFO for a terminal session.
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")
# Loggers uvicorn configures with its own handlers unless told otherwise.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as one JSON line; `extra` fields are promoted."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    )
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def logging_config(level: str = "INFO", json_logs: bool = False) -> Dict[str, Any]:
    """
    dictConfig mapping used by `configure_logging`.

    Also usable as uvicorn's `log_config`, so server access logs share the
    application's format.
    """
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_logs else "console",
                "level": level,
            }
        },
        "root": {"handlers": ["default"], "level": level},
        "loggers": {
            **{name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            **{name: {"handlers": [], "level": level, "propagate": True} for name in _SERVER_LOGGERS},
        },
    }


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    """
    logging.config.dictConfig(logging_config(level, json_logs))


def configure_from_settings(settings: Optional[Any] = None) -> None:
    """Configure logging from `LOG_LEVEL` / `LOG_JSON`."""
    if settings is None:
        from src.config import get_settings

        settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = ["configure_logging", "configure_from_settings", "logging_config", "get_logger", "JsonFormatter"]
