"""Credential pool for the share host: persisted secrets, primary index, validation.

The pool itself is an immutable snapshot handed to the orchestrator for one
resolution. Promotion of a new primary credential is written back through
:meth:`CredentialStore.promote`, the single update path for the persisted
primary index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from lime_streamcore.backend.common.errors import AuthenticationError, LimeError, ParseError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.persistence.sqlite import KeyValueStore

if TYPE_CHECKING:
    from lime_streamcore.backend.streams.febbox import FebBoxClient

log = get_logger(__name__)

TOKENS_KEY = "febbox_tokens"
PRIMARY_INDEX_KEY = "febbox_primary_token_index"

_MB = 1024 * 1024


class CredentialStatus(str, Enum):
    UNVALIDATED = "unvalidated"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"


class QuotaSnapshot(BaseModel):
    used_bytes: int = Field(ge=0)
    limit_bytes: int = Field(ge=0)
    resets_at: Optional[str] = None
    is_vip: bool = False

    @classmethod
    def from_traffic(cls, payload: dict) -> "QuotaSnapshot":
        """Build from the quota endpoint's megabyte figures; raises ``ParseError`` on bad numbers."""

        try:
            used_mb = float(payload.get("traffic_usage_mb") or 0)
            limit_mb = float(payload.get("traffic_limit_mb") or 0)
            return cls(
                used_bytes=int(used_mb * _MB),
                limit_bytes=int(limit_mb * _MB),
                resets_at=str(payload.get("reset_at") or "") or None,
                is_vip=bool(payload.get("is_vip")),
            )
        except (TypeError, ValueError, OverflowError) as exc:
            raise ParseError(f"Unreadable traffic quota: {exc}") from exc

    @property
    def has_traffic_remaining(self) -> bool:
        return self.used_bytes < self.limit_bytes


@dataclass(slots=True)
class Credential:
    secret: str = field(repr=False)
    status: CredentialStatus = CredentialStatus.UNVALIDATED
    quota: Optional[QuotaSnapshot] = None
    error: Optional[str] = None

    def as_dict(self, index: int) -> dict[str, object]:
        masked = f"{self.secret[:4]}…{self.secret[-4:]}" if len(self.secret) > 8 else "…"
        return {
            "index": index,
            "credential": masked,
            "status": self.status.value,
            "quota": self.quota.model_dump() if self.quota else None,
            "error": self.error,
        }


@dataclass(frozen=True)
class CredentialPool:
    credentials: Tuple[Credential, ...] = ()
    primary_index: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.primary_index < max(len(self.credentials), 1):
            object.__setattr__(self, "primary_index", 0)

    @classmethod
    def of(cls, secrets: Sequence[str], primary_index: int = 0) -> "CredentialPool":
        return cls(tuple(Credential(secret=s) for s in secrets), primary_index)

    def __len__(self) -> int:
        return len(self.credentials)

    def rotate(self) -> List[Tuple[int, Credential]]:
        """Credentials ordered from the primary index, wrapping around."""

        count = len(self.credentials)
        return [
            ((self.primary_index + offset) % count, self.credentials[(self.primary_index + offset) % count])
            for offset in range(count)
        ]

    def primary(self) -> Optional[Credential]:
        if not self.credentials:
            return None
        return self.credentials[self.primary_index]


class CredentialStore:
    """Persists the ordered credential list and the primary index."""

    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self._store = store or KeyValueStore()

    def secrets(self) -> List[str]:
        raw = self._store.get_json(TOKENS_KEY, default=[])
        if not isinstance(raw, list):
            return []
        return [str(item) for item in raw if isinstance(item, str) and item.strip()]

    def primary_index(self) -> int:
        raw = self._store.get(PRIMARY_INDEX_KEY)
        count = len(self.secrets())
        try:
            index = int(raw) if raw is not None else 0
        except ValueError:
            index = -1
        if index < 0 or index >= max(count, 1):
            index = 0
            self._store.set(PRIMARY_INDEX_KEY, "0")
        return index

    def pool(self) -> CredentialPool:
        return CredentialPool.of(self.secrets(), self.primary_index())

    def promote(self, index: int) -> None:
        count = len(self.secrets())
        if not 0 <= index < count:
            raise IndexError(f"Credential index {index} out of range")
        self._store.set(PRIMARY_INDEX_KEY, str(index))
        log.info("credential_promoted", extra={"credential_index": index})

    def add(self, secret: str) -> List[str]:
        value = secret.strip()
        secrets = self.secrets()
        if value and value not in secrets:
            secrets.append(value)
            self._store.set_json(TOKENS_KEY, secrets)
        return secrets

    def update(self, index: int, secret: str) -> List[str]:
        secrets = self.secrets()
        if not 0 <= index < len(secrets):
            raise IndexError(f"Credential index {index} out of range")
        value = secret.strip()
        if not value:
            return self._drop(secrets, index)
        secrets[index] = value
        self._store.set_json(TOKENS_KEY, secrets)
        return secrets

    def remove(self, index: int) -> List[str]:
        secrets = self.secrets()
        if not 0 <= index < len(secrets):
            raise IndexError(f"Credential index {index} out of range")
        return self._drop(secrets, index)

    def _drop(self, secrets: List[str], index: int) -> List[str]:
        primary = self.primary_index()
        secrets.pop(index)
        self._store.set_json(TOKENS_KEY, secrets)
        # keep the primary pointing at the same secret
        if index < primary:
            self._store.set(PRIMARY_INDEX_KEY, str(primary - 1))
        return secrets


class CredentialValidator:
    """Checks credentials against the share host's traffic-quota endpoint.

    Invalid credentials are marked, never removed; the list belongs to the user.
    """

    def __init__(self, client: "FebBoxClient") -> None:
        self._client = client

    def validate(self, credential: Credential) -> Credential:
        if not credential.secret.strip():
            credential.status = CredentialStatus.INVALID
            credential.error = "Credential is required"
            return credential

        credential.status = CredentialStatus.VALIDATING
        try:
            credential.quota = self._client.traffic(credential.secret)
        except AuthenticationError as exc:
            credential.status = CredentialStatus.INVALID
            credential.error = str(exc)
        except LimeError as exc:
            credential.status = CredentialStatus.INVALID
            credential.error = f"Request failed: {exc}"
        else:
            credential.status = CredentialStatus.VALID
            credential.error = None
        return credential

    def validate_pool(self, pool: CredentialPool) -> CredentialPool:
        for credential in pool.credentials:
            self.validate(credential)
        return pool


__all__ = [
    "Credential",
    "CredentialPool",
    "CredentialStatus",
    "CredentialStore",
    "CredentialValidator",
    "QuotaSnapshot",
]
