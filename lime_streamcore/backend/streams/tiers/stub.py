from __future__ import annotations

from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.streams.models import StreamRequest, TierResult
from lime_streamcore.backend.streams.tiers.base import ResolutionContext, StreamTier

log = get_logger(__name__)


class DisabledTier(StreamTier):
    """Placeholder for a tier whose capability is not configured."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason

    @property
    def is_enabled(self) -> bool:
        return False

    def resolve(self, request: StreamRequest, context: ResolutionContext) -> TierResult:
        log.debug("tier_disabled", extra={"tier": self.name, "reason": self.reason})
        return TierResult.failure(self.name, self.reason)
