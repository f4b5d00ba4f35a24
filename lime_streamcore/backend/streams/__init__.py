"""Stream resolution: credentials, catalog, shares, normalisation and tier fallback."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_MODULE_EXPORTS = {
    "lime_streamcore.backend.streams.models": (
        "MediaKind",
        "RemoteFile",
        "ShareReference",
        "StreamCandidate",
        "StreamKind",
        "StreamRequest",
        "TierResult",
    ),
    "lime_streamcore.backend.streams.credentials": (
        "Credential",
        "CredentialPool",
        "CredentialStatus",
        "CredentialStore",
        "CredentialValidator",
        "QuotaSnapshot",
    ),
    "lime_streamcore.backend.streams.orchestrator": ("FallbackOrchestrator", "Resolution"),
    "lime_streamcore.backend.streams.service": ("StreamService",),
}

__all__ = sorted(name for names in _MODULE_EXPORTS.values() for name in names)


def __getattr__(name: str) -> Any:
    for module_name, symbols in _MODULE_EXPORTS.items():
        if name in symbols:
            module = import_module(module_name)
            value = getattr(module, name)
            globals()[name] = value
            return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
