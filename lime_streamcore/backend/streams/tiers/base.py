from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from lime_streamcore.backend.common.errors import LimeError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.streams.credentials import CredentialPool
from lime_streamcore.backend.streams.models import StreamRequest, TierResult

log = get_logger(__name__)


@dataclass(slots=True)
class ResolutionContext:
    """Per-resolution inputs shared by every tier."""

    credentials: CredentialPool
    promote: Callable[[int], None]
    region: str


class StreamTier(ABC):
    """One strategy for turning a :class:`StreamRequest` into a playable URL.

    Subclasses implement :meth:`resolve` and may raise any ``LimeError``;
    :meth:`run` turns those into failed :class:`TierResult` values so the
    orchestrator only ever sees results.
    """

    name: str = "tier"
    # Tiers that search the catalog are skipped once a cached share was tried.
    searches_catalog: bool = False

    @property
    def is_enabled(self) -> bool:
        return True

    def run(self, request: StreamRequest, context: ResolutionContext) -> TierResult:
        return self.guarded(lambda: self.resolve(request, context))

    def guarded(self, action: Callable[[], TierResult]) -> TierResult:
        try:
            result = action()
        except LimeError as exc:
            log.info("tier_failed", extra={"tier": self.name, "error": str(exc), "error_type": type(exc).__name__})
            return TierResult.failure(self.name, str(exc))
        if result.success:
            log.info("tier_succeeded", extra={"tier": self.name, "quality": result.quality})
        return result

    @abstractmethod
    def resolve(self, request: StreamRequest, context: ResolutionContext) -> TierResult:
        raise NotImplementedError
