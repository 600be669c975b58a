"""Logging setup.

Production emits one JSON object per line; development gets readable
columns. Anything passed through ``extra=`` is kept in both.
"""

import json
import logging
import logging.config
from datetime import UTC, datetime
from typing import Any

from ragent.config import Environment, get_settings

_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached to a record through ``extra=``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "file": f"{record.pathname}:{record.lineno}",
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if extra := extra_fields(record):
            payload["extra"] = extra
        return json.dumps(payload, default=str, ensure_ascii=False)


class DevFormatter(logging.Formatter):
    """``time | LEVEL | logger | message | key=value ...``"""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if extra := extra_fields(record):
            line += " | " + " ".join(f"{key}={value}" for key, value in extra.items())
        return line


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
) -> logging.Logger:
    """Install a single stdout handler on the root logger.

    Args:
        level: Level name; defaults to ``LOG_LEVEL``.
        json_output: Defaults to JSON everywhere except development.

    Returns:
        The root logger.
    """
    settings = get_settings()
    if json_output is None:
        json_output = settings.environment != Environment.DEVELOPMENT
    level_name = (level or settings.log_level).upper()
    if not isinstance(logging.getLevelName(level_name), int):
        level_name = "INFO"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"()": JSONFormatter if json_output else DevFormatter},
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "default",
                },
            },
            "root": {"level": level_name, "handlers": ["stdout"]},
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        }
    )
    return logging.getLogger()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
