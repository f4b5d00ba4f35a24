from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from lime_streamcore.backend.common.logging import get_logger

from .paths import get_database_path, get_user_settings_path
from .user import load_user_settings, write_user_settings

log = get_logger(__name__)

_SETTINGS_LOCK = threading.Lock()
_SETTINGS_SINGLETON: Optional["Settings"] = None

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_RETRY_ATTEMPTS = 1


@dataclass
class Settings:
    app_name: str
    env: str
    log_level: str
    request_timeout: float
    retry_attempts: int
    database_path: Path
    user_settings_path: Path

    def as_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "env": self.env,
            "log_level": self.log_level,
            "request_timeout": self.request_timeout,
            "retry_attempts": self.retry_attempts,
            "database_path": str(self.database_path),
            "user_settings_path": str(self.user_settings_path),
        }


def _coerce_float(raw: Any, default: float, *, name: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        log.warning("settings_value_invalid", extra={"setting": name, "value": raw})
        return default
    return value if value > 0 else default


def _coerce_int(raw: Any, default: int, *, name: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        log.warning("settings_value_invalid", extra={"setting": name, "value": raw})
        return default
    return max(1, value)


def _build_settings() -> Settings:
    user_cfg = load_user_settings()
    app_name = os.getenv("LIME_APP_NAME", user_cfg.get("app_name", "LimeTV"))
    env = os.getenv("LIME_ENV", user_cfg.get("env", "development"))
    log_level = str(os.getenv("LIME_LOG_LEVEL", user_cfg.get("log_level", "INFO"))).upper()

    timeout_raw = os.getenv("LIME_REQUEST_TIMEOUT") or user_cfg.get("request_timeout", _DEFAULT_TIMEOUT)
    attempts_raw = os.getenv("LIME_RETRY_ATTEMPTS") or user_cfg.get("retry_attempts", _DEFAULT_RETRY_ATTEMPTS)

    return Settings(
        app_name=app_name,
        env=env,
        log_level=log_level,
        request_timeout=_coerce_float(timeout_raw, _DEFAULT_TIMEOUT, name="request_timeout"),
        retry_attempts=_coerce_int(attempts_raw, _DEFAULT_RETRY_ATTEMPTS, name="retry_attempts"),
        database_path=get_database_path(),
        user_settings_path=get_user_settings_path(),
    )


def get_settings(*, reload: bool = False) -> Settings:
    global _SETTINGS_SINGLETON
    with _SETTINGS_LOCK:
        if _SETTINGS_SINGLETON is None or reload:
            _SETTINGS_SINGLETON = _build_settings()

        return _SETTINGS_SINGLETON


def update_settings(changes: Mapping[str, Any]) -> Settings:
    """Merge ``changes`` into the user settings file and reload."""

    allowed = {"app_name", "env", "log_level", "request_timeout", "retry_attempts"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    payload = load_user_settings()
    payload.update(changes)
    payload["updated_at"] = datetime.now(timezone.utc).isoformat()
    write_user_settings(payload)

    return get_settings(reload=True)


__all__ = [
    "Settings",
    "get_settings",
    "update_settings",
]
