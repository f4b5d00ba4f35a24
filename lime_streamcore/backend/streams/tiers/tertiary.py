from __future__ import annotations

from typing import Optional

from lime_streamcore.backend.common.errors import AuthenticationError, NotFoundError, ParseError
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.streams.models import MediaKind, StreamCandidate, StreamKind, StreamRequest, TierResult
from lime_streamcore.backend.streams.tiers.base import ResolutionContext, StreamTier

SERVICE = "aether"


class HlsFallbackTier(StreamTier):
    """Last resort: a single-call API that answers with an adaptive playlist."""

    name = "tertiary"

    def __init__(self, session: Optional[HttpSession] = None) -> None:
        self._session = session or HttpSession()

    def resolve(self, request: StreamRequest, context: ResolutionContext) -> TierResult:
        primary = context.credentials.primary()
        if primary is None:
            raise AuthenticationError("No share credentials configured")

        if request.media_type is MediaKind.TV:
            path = self._session.endpoint_path(
                SERVICE, "tv", content_id=request.content_id, season=request.season, episode=request.episode
            )
        else:
            path = self._session.endpoint_path(SERVICE, "movie", content_id=request.content_id)

        resp = self._session.get(SERVICE, path, params={"ui": primary.secret})
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ParseError(f"{SERVICE} returned non-JSON body") from exc

        url = payload.get("hls") if isinstance(payload, dict) else None
        if not url:
            raise NotFoundError("No stream in fallback response")

        candidate = StreamCandidate(url=str(url), quality="Auto", size_label="Unknown", kind=StreamKind.ADAPTIVE)
        return TierResult.from_candidate(self.name, candidate, [candidate])
