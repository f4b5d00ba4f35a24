from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from lime_streamcore.backend.common.logging import get_logger

from .paths import expand_env, get_provider_settings_path, read_json

log = get_logger(__name__)


def load_provider_service_settings() -> Dict[str, Any]:
    path = get_provider_settings_path()
    data = read_json(path)

    return expand_env(data)


try:  # pragma: no cover - guard against missing files at import time
    PROVIDER_SERVICE_SETTINGS: Dict[str, Any] = load_provider_service_settings()
except (OSError, ValueError) as exc:
    log.warning("provider_settings_unavailable", extra={"error": str(exc)})
    PROVIDER_SERVICE_SETTINGS = {}


def _provider_settings() -> Dict[str, Any]:
    return PROVIDER_SERVICE_SETTINGS.get("providers", {}) if PROVIDER_SERVICE_SETTINGS else {}


def list_provider_configs() -> Dict[str, Dict[str, Any]]:
    providers = _provider_settings()
    result: Dict[str, Dict[str, Any]] = {}
    for name, cfg in providers.items():
        if isinstance(cfg, Mapping):
            result[name] = dict(cfg)
        else:
            result[name] = {}

    return result


def get_service_config(service: str) -> Optional[Dict[str, Any]]:
    providers = _provider_settings()
    if not providers:
        return None

    return providers.get(service)


def get_provider_endpoints(service: str) -> Mapping[str, Any]:
    cfg = get_service_config(service) or {}

    return cfg.get("endpoints", {}) or {}


def get_catalog_cipher_config() -> Dict[str, Any]:
    """Return the encrypted-search settings (app key, cipher key/IV, platform metadata)."""

    cfg = get_service_config("showbox") or {}

    return dict(cfg.get("cipher", {}) or {})


def get_default_region() -> str:
    cfg = get_service_config("febbox") or {}

    return str(cfg.get("default_region") or "USA7")


__all__ = [
    "PROVIDER_SERVICE_SETTINGS",
    "get_catalog_cipher_config",
    "get_default_region",
    "get_provider_endpoints",
    "get_service_config",
    "list_provider_configs",
    "load_provider_service_settings",
]
