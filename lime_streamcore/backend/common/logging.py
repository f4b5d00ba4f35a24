"""JSON line logging; secrets passed through ``extra`` are masked."""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any, MutableMapping, Optional

_HANDLER_NAME = "lime-json"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

# Attributes every LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}

_SECRET_FIELDS = frozenset({"credential", "secret", "cookie", "token", "ui", "app_key"})
MASK = "***"


class RedactSecretsFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for key in _SECRET_FIELDS.intersection(record.__dict__):
            if record.__dict__[key]:
                setattr(record, key, MASK)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: MutableMapping[str, Any] = {
            "ts": int(time.time() * 1000),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        payload.update({k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS})
        return json.dumps(payload, ensure_ascii=False, default=str)


def init_logging(level: str = "INFO", *, stream=None) -> logging.Handler:
    """Install the JSON handler on the root logger, replacing a previous one."""

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    root.setLevel(_LEVELS.get(level.upper(), logging.INFO))
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RedactSecretsFilter())
    root.addHandler(handler)
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "lime_streamcore")
