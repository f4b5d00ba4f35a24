"""Fallback orchestration across the resolution tiers."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.streams.catalog import EncryptedCatalogClient
from lime_streamcore.backend.streams.credentials import CredentialPool
from lime_streamcore.backend.streams.febbox import FebBoxClient
from lime_streamcore.backend.streams.models import ShareReference, StreamRequest, TierResult
from lime_streamcore.backend.streams.shares import ShareReferenceStore
from lime_streamcore.backend.streams.tiers import (
    DisabledTier,
    HlsFallbackTier,
    LegacyCredentialTier,
    ResolutionContext,
    ShareTier,
    StreamTier,
)
from lime_streamcore.backend.streams.tiers.share import ExternalIdLookup

log = get_logger(__name__)


@dataclass(slots=True)
class Resolution:
    result: TierResult
    attempts: List[TierResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return self.result.success

    def as_dict(self) -> dict[str, object]:
        return {
            **self.result.as_dict(),
            "cancelled": self.cancelled,
            "attempts": [{"tier": a.tier, "success": a.success, "error": a.error} for a in self.attempts],
        }


class FallbackOrchestrator:
    """Runs tiers strictly in order and returns the first success.

    When the request carries a cached share reference it is resolved directly
    first; if that fails, catalog-searching tiers are skipped and the remaining
    tiers run as usual. A newly obtained share token is written to the share
    store (when one is configured).
    """

    def __init__(
        self,
        tiers: Sequence[StreamTier],
        *,
        share_tier: Optional[ShareTier] = None,
        share_store: Optional[ShareReferenceStore] = None,
    ) -> None:
        self._tiers = list(tiers)
        self._share_tier = share_tier
        self._share_store = share_store

    @property
    def tiers(self) -> List[StreamTier]:
        return list(self._tiers)

    @classmethod
    def default(
        cls,
        session: Optional[HttpSession] = None,
        *,
        external_ids: Optional[ExternalIdLookup] = None,
        share_store: Optional[ShareReferenceStore] = None,
    ) -> "FallbackOrchestrator":
        session = session or HttpSession()
        client = FebBoxClient(session)
        catalog = EncryptedCatalogClient(session)

        # cached share references resolve even when catalog search is unavailable
        share_tier = ShareTier(catalog if catalog.is_configured else None, client, external_ids=external_ids)
        primary: StreamTier = share_tier
        if not catalog.is_configured:
            primary = DisabledTier("primary", "Encrypted catalog credentials are not configured")

        return cls(
            [primary, LegacyCredentialTier(session), HlsFallbackTier(session)],
            share_tier=share_tier,
            share_store=share_store,
        )

    def resolve(
        self,
        request: StreamRequest,
        *,
        credentials: CredentialPool,
        promote: Callable[[int], None],
        region: str,
        cancel: Optional[threading.Event] = None,
    ) -> Resolution:
        context = ResolutionContext(credentials=credentials, promote=promote, region=region)
        attempts: List[TierResult] = []
        tiers = self._tiers

        cached = request.share_reference
        if cached is not None and self._share_tier is not None:
            result = self._share_tier.resolve_direct(cached.token, request, context)
            result.tier = "cached_share"
            attempts.append(result)
            if result.success:
                return Resolution(result, attempts)
            log.info("cached_share_failed", extra={"content_id": request.content_id, "error": result.error})
            tiers = [t for t in tiers if not t.searches_catalog]

        for tier in tiers:
            if cancel is not None and cancel.is_set():
                log.info("stream_resolution_cancelled", extra={"content_id": request.content_id})
                return Resolution(TierResult.failure(tier.name, "Cancelled"), attempts, cancelled=True)

            result = tier.run(request, context)
            attempts.append(result)
            if result.success:
                self._remember_share(request, result)
                return Resolution(result, attempts)

        tried = ", ".join(a.tier for a in attempts) or "none"
        log.warning(
            "stream_resolution_failed",
            extra={
                "content_id": request.content_id,
                "media_type": request.media_type.value,
                "errors": {a.tier: a.error for a in attempts},
            },
        )
        return Resolution(TierResult.failure("all", f"No playable stream found (tried: {tried})"), attempts)

    def _remember_share(self, request: StreamRequest, result: TierResult) -> None:
        if self._share_store is None or not result.share_token:
            return
        cached = request.share_reference
        if cached is not None and cached.token == result.share_token:
            return
        self._share_store.save(
            ShareReference(request.content_id, request.media_type, result.share_token, request.season)
        )
        log.info("share_reference_saved", extra={"content_id": request.content_id, "tier": result.tier})
