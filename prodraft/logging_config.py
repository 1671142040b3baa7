"""Logging setup for the API process.

``setup_logging()`` runs once when ``prodraft.main`` is imported. Modules log
through ``logging.getLogger(__name__)`` and never configure handlers.

Env vars
--------
LOG_LEVEL : str
    Root level name (default ``INFO``).
LOG_FORMAT : str
    ``json`` (default) for one JSON object per line, ``text`` for local runs.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_QUIET_LOGGERS = ("httpcore", "httpx", "urllib3", "uvicorn.access", "xhtml2pdf")


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Install a single stdout handler on the root logger.

    Arguments override ``LOG_LEVEL`` / ``LOG_FORMAT``. Calling it again
    replaces the handler instead of stacking a second one.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("LOG_FORMAT", "json")).lower()

    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["JsonFormatter", "setup_logging"]
