from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping

from .paths import get_user_settings_path


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load_user_settings() -> Dict[str, Any]:
    user_path = get_user_settings_path()
    if not user_path.exists():
        return {}
    try:
        with user_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        return {}

    return data if isinstance(data, dict) else {}


def write_user_settings(payload: Mapping[str, Any]) -> None:
    user_path = get_user_settings_path()
    ensure_parent(user_path)
    with user_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False, sort_keys=True)


__all__ = [
    "ensure_parent",
    "load_user_settings",
    "write_user_settings",
]
