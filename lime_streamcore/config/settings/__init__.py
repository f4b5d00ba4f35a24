from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

__all__ = [
    "PROVIDER_SERVICE_SETTINGS",
    "Settings",
    "core",
    "config_paths",
    "paths",
    "providers",
    "user",
    "get_catalog_cipher_config",
    "get_database_path",
    "get_default_region",
    "get_provider_endpoints",
    "get_provider_settings_path",
    "get_service_config",
    "get_settings",
    "get_user_settings_path",
    "list_provider_configs",
    "load_provider_service_settings",
    "update_settings",
]

_MODULE_EXPORTS = {
    "core": {
        "Settings",
        "get_settings",
        "update_settings",
    },
    "paths": {
        "config_paths",
        "get_database_path",
        "get_provider_settings_path",
        "get_user_settings_path",
    },
    "providers": {
        "PROVIDER_SERVICE_SETTINGS",
        "get_catalog_cipher_config",
        "get_default_region",
        "get_provider_endpoints",
        "get_service_config",
        "list_provider_configs",
        "load_provider_service_settings",
    },
}

_SUBMODULE_NAMES = {"core", "paths", "providers", "user"}

if TYPE_CHECKING:  # pragma: no cover - only for static analysis
    from . import core, paths, providers, user
    from .core import Settings, get_settings, update_settings
    from .paths import (
        config_paths,
        get_database_path,
        get_provider_settings_path,
        get_user_settings_path,
    )
    from .providers import (
        PROVIDER_SERVICE_SETTINGS,
        get_catalog_cipher_config,
        get_default_region,
        get_provider_endpoints,
        get_service_config,
        list_provider_configs,
        load_provider_service_settings,
    )


def __getattr__(name: str) -> Any:
    if name in _SUBMODULE_NAMES:
        module = importlib.import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module

    for module_name, symbols in _MODULE_EXPORTS.items():
        if name in symbols:
            module = importlib.import_module(f"{__name__}.{module_name}")
            value = getattr(module, name)
            globals()[name] = value
            return value

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    exported = set(__all__)
    exported.update(_SUBMODULE_NAMES)
    for symbols in _MODULE_EXPORTS.values():
        exported.update(symbols)
    exported.update(globals().keys())
    return sorted(exported)
