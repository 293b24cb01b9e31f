"""
Structured JSON Logging

One JSON object per line on stdout and in rotating files under
settings.logs_path. The request's correlation id lives in a ContextVar set
by CorrelationIdMiddleware and is stamped on every record.
"""
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from ..config.settings import Settings, settings as default_settings
from .time import utc_now, format_iso


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Marks handlers installed by setup_logging so a second call replaces only them
_HANDLER_TAG = "_helpdesk_handler"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON line, with workflow ids from `extra`"""

    EXTRA_FIELDS = (
        "ticket_id", "approval_request_id", "stage_id", "rule_id",
        "user_id", "action", "status", "error_code", "details",
        "method", "path", "status_code", "duration_ms",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": format_iso(utc_now()),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id

        for name in self.EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _tagged(handler: logging.Handler, formatter: logging.Formatter, level: int = logging.NOTSET):
    handler.setFormatter(formatter)
    handler.setLevel(level)
    setattr(handler, _HANDLER_TAG, True)
    return handler


def _rotating_file(path: str, formatter: logging.Formatter, level: int = logging.NOTSET):
    handler = RotatingFileHandler(
        path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
    )
    return _tagged(handler, formatter, level)


def setup_logging(cfg: Optional[Settings] = None) -> None:
    """
    Configure the root logger

    Installs stdout, helpdesk.log and error.log handlers. Safe to call more
    than once (each app created by create_app calls it); handlers added by
    others, such as pytest's capture, are left alone.
    """
    cfg = cfg or default_settings
    os.makedirs(cfg.logs_path, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, cfg.log_level.upper(), logging.INFO))
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    formatter = JsonFormatter()
    root_logger.addHandler(_tagged(logging.StreamHandler(sys.stdout), formatter))
    root_logger.addHandler(_rotating_file(os.path.join(cfg.logs_path, "helpdesk.log"), formatter))
    root_logger.addHandler(
        _rotating_file(os.path.join(cfg.logs_path, "error.log"), formatter, logging.ERROR)
    )

    # Third-party noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
