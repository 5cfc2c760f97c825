"""Logging for the coefficient plot pipeline.

Module loggers are children of the ``coefstats`` package logger, which
owns the single stdout handler.  Format (JSON lines or plain text) and
level default to :mod:`coefstats.config.settings`; the CLI can switch
them with :func:`configure_logging`.
"""

import logging
import json
import sys
from typing import Any, Dict, Optional

from ..config.settings import settings

PACKAGE_LOGGER = "coefstats"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Format records as one JSON object per line.

    A ``context`` dict passed through ``extra`` (e.g. term counts, the
    meta-analysis method) is merged into the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            log_data.update(context)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def _make_handler(log_format: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    return handler


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> logging.Logger:
    """Replace the package handler; unset arguments fall back to settings."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.addHandler(_make_handler(log_format or settings.log_format))
    level_name = (level or settings.log_level).upper()
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))
    return package_logger


def get_logger(name: str) -> logging.Logger:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not package_logger.handlers:
        configure_logging()
    return logging.getLogger(name)
