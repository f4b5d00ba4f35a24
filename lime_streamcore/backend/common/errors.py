from __future__ import annotations

from typing import Optional


class LimeError(Exception):
    """Base for all Lime stream-core exceptions."""


class ConfigError(LimeError):
    """Configuration related issues."""


class NetworkError(LimeError):
    """Network/HTTP layer issues."""


class ProviderError(NetworkError):
    """A third-party provider rejected or failed a request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ProviderError):
    """Credential rejected by the provider; do not retry with the same credential."""


class NotFoundError(ProviderError):
    """No matching folder, file, episode, stream or subtitle."""


class ServiceUnavailableError(ProviderError):
    """Provider answered 5xx or timed out; the provider itself is unhealthy."""


class ParseError(LimeError):
    """Malformed listing, envelope or subtitle payload."""
