"""
Structured logging for the engine.

Every module logs through ``get_logger(__name__)`` and passes structured
fields as ``extra_data``; ``setup_logging`` decides whether they end up as
JSON lines or plain text.
"""

import sys
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .config import Settings, get_settings


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, stamped with the engine identity"""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()
        settings = settings or get_settings()
        self.identity = {
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.identity,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(getattr(record, "extra_data", {}))

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable log lines for local runs"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure the root logger from settings.

    ``LOG_FORMAT`` selects JSON or text, ``LOG_LEVEL`` the threshold, and
    ``LOG_FILE`` adds a file handler next to the stdout handler.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    formatter: logging.Formatter
    if settings.LOG_FORMAT == "json":
        formatter = StructuredFormatter(settings)
    else:
        formatter = TextFormatter()

    handlers: list = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)

    logging.basicConfig(level=level, handlers=handlers, force=True)


class LoggerAdapter(logging.LoggerAdapter):
    """Moves the ``extra_data`` keyword onto the log record"""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra_data = kwargs.pop("extra_data", {})
        kwargs.setdefault("extra", {})["extra_data"] = extra_data
        return msg, kwargs


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger that accepts ``extra_data``"""
    return LoggerAdapter(logging.getLogger(name), {})
