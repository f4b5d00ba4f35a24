from __future__ import annotations

from typing import Callable, Optional

from lime_streamcore.backend.common.errors import AuthenticationError, ConfigError, NotFoundError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.streams.catalog import EncryptedCatalogClient
from lime_streamcore.backend.streams.febbox import FebBoxClient
from lime_streamcore.backend.streams.models import MediaKind, StreamRequest, TierResult
from lime_streamcore.backend.streams.normalizer import normalize_listing
from lime_streamcore.backend.streams.shares import ShareResolver
from lime_streamcore.backend.streams.tiers.base import ResolutionContext, StreamTier

log = get_logger(__name__)

ExternalIdLookup = Callable[[int, MediaKind], Optional[str]]


class ShareTier(StreamTier):
    """Catalog search, share creation, share resolution and quality listing.

    Without a configured catalog only known share tokens can be resolved.
    """

    name = "primary"
    searches_catalog = True

    def __init__(
        self,
        catalog: Optional[EncryptedCatalogClient],
        client: FebBoxClient,
        *,
        resolver: Optional[ShareResolver] = None,
        external_ids: Optional[ExternalIdLookup] = None,
    ) -> None:
        self._catalog = catalog
        self._client = client
        self._resolver = resolver or ShareResolver(client)
        self._external_ids = external_ids

    def _credential(self, context: ResolutionContext) -> str:
        primary = context.credentials.primary()
        if primary is None:
            raise AuthenticationError("No share credentials configured")
        return primary.secret

    def _external_id(self, request: StreamRequest) -> str:
        if request.external_id:
            return request.external_id
        if self._external_ids is not None:
            found = self._external_ids(request.content_id, request.media_type)
            if found:
                return found
        raise NotFoundError(f"No external id for {request.media_type.value} {request.content_id}")

    def resolve(self, request: StreamRequest, context: ResolutionContext) -> TierResult:
        if self._catalog is None or not self._catalog.is_configured:
            raise ConfigError("Encrypted catalog credentials are not configured")
        credential = self._credential(context)
        match = self._catalog.resolve(self._external_id(request), request.media_type)
        share_token = self._client.create_share(match.media_id, match.box_type, credential)
        return self._from_share(share_token, request, context, credential)

    def resolve_direct(self, share_token: str, request: StreamRequest, context: ResolutionContext) -> TierResult:
        """Resolve a known share token without touching the catalog."""

        return self.guarded(lambda: self._from_share(share_token, request, context, self._credential(context)))

    def _from_share(self, share_token: str, request: StreamRequest, context: ResolutionContext,
                    credential: str) -> TierResult:
        self._client.region = context.region
        picked = self._resolver.resolve(
            share_token, credential, request.media_type, request.season, request.episode
        )
        best, candidates = normalize_listing(self._client.quality_listing(share_token, picked.file_id, credential))
        return TierResult.from_candidate(self.name, best, candidates, share_token=share_token)
