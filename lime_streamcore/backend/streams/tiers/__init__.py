"""Resolution tiers, tried in order by the fallback orchestrator."""

from lime_streamcore.backend.streams.tiers.base import ResolutionContext, StreamTier
from lime_streamcore.backend.streams.tiers.legacy import LegacyCredentialTier
from lime_streamcore.backend.streams.tiers.share import ShareTier
from lime_streamcore.backend.streams.tiers.stub import DisabledTier
from lime_streamcore.backend.streams.tiers.tertiary import HlsFallbackTier

__all__ = [
    "DisabledTier",
    "HlsFallbackTier",
    "LegacyCredentialTier",
    "ResolutionContext",
    "ShareTier",
    "StreamTier",
]
