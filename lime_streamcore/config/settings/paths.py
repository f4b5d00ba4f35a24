"""File locations and JSON/env helpers for the configuration layer.

Persistent state (the SQLite store and the user settings file) lives under a
state directory, ``LIME_HOME`` or ``~/.lime_streamcore``. Individual files can
be relocated with ``config/config_paths.json`` or a ``LIME_<NAME>_PATH``
variable, the latter winning.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

_CONFIG_DIR = Path(__file__).resolve().parent.parent
_PACKAGE_ROOT = _CONFIG_DIR.parent

load_dotenv(_PACKAGE_ROOT.parent / ".env")

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

_ENV_OVERRIDES = {
    "provider_service_settings": "LIME_PROVIDER_SETTINGS_PATH",
    "database": "LIME_DATABASE_PATH",
    "user_settings": "LIME_USER_SETTINGS_PATH",
}


def expand_env(obj: Any) -> Any:
    """Replace ``${VAR}`` tokens in strings, recursing into lists and dicts.

    Unset variables expand to an empty string.
    """

    if isinstance(obj, str):
        return _ENV_PATTERN.sub(lambda m: os.getenv(m.group(1), ""), obj)
    if isinstance(obj, list):
        return [expand_env(v) for v in obj]
    if isinstance(obj, dict):
        return {k: expand_env(v) for k, v in obj.items()}

    return obj


def read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def state_dir() -> Path:
    return Path(os.getenv("LIME_HOME") or Path.home() / ".lime_streamcore").expanduser()


def config_paths() -> Dict[str, Path]:
    home = state_dir()
    merged: Dict[str, Any] = {
        "provider_service_settings": _CONFIG_DIR / "providerservicesettings.json",
        "database": home / "limecore.db",
        "user_settings": home / "user_settings.json",
    }
    overrides = _CONFIG_DIR / "config_paths.json"
    if overrides.exists():
        merged.update({k: v for k, v in read_json(overrides).items() if k in merged})
    for key, var in _ENV_OVERRIDES.items():
        if os.getenv(var):
            merged[key] = os.environ[var]

    # relative entries are taken from the state directory
    return {k: (Path(v) if Path(v).is_absolute() else home / v).expanduser() for k, v in merged.items()}


def get_provider_settings_path() -> Path:
    return config_paths()["provider_service_settings"]


def get_user_settings_path() -> Path:
    return config_paths()["user_settings"]


def get_database_path() -> Path:
    path = config_paths()["database"]
    path.parent.mkdir(parents=True, exist_ok=True)

    return path


__all__ = [
    "config_paths",
    "expand_env",
    "get_database_path",
    "get_provider_settings_path",
    "get_user_settings_path",
    "read_json",
    "state_dir",
]
