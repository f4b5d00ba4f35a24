from __future__ import annotations

from typing import Any, Dict, List, Optional

from lime_streamcore.backend.common.errors import ParseError, ProviderError, ServiceUnavailableError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.streams.models import MediaKind, StreamCandidate, StreamRequest, TierResult
from lime_streamcore.backend.streams.normalizer import classify, select_best
from lime_streamcore.backend.streams.tiers.base import ResolutionContext, StreamTier

log = get_logger(__name__)

SERVICE = "febapi"


def candidates_from_versions(payload: Dict[str, Any]) -> List[StreamCandidate]:
    """Flatten ``versions[].links[]`` into candidates, in listing order."""

    out: List[StreamCandidate] = []
    versions = payload.get("versions")
    if not isinstance(versions, list):
        return out
    for version in versions:
        if not isinstance(version, dict):
            continue
        for link in version.get("links") or []:
            if not isinstance(link, dict) or not link.get("url"):
                continue
            url = str(link["url"])
            out.append(
                StreamCandidate(
                    url=url,
                    quality=str(link.get("quality") or link.get("name") or "Unknown"),
                    size_label=str(link.get("size") or version.get("size") or "Unknown"),
                    kind=classify(url),
                )
            )
    return out


class LegacyCredentialTier(StreamTier):
    """Per-title API that accepts a share credential as a query cookie.

    Credentials are tried starting from the primary. A service-level failure
    (5xx or timeout) ends the tier at once; any other failure moves on to the
    next credential. The credential that succeeds becomes the new primary.
    """

    name = "legacy"

    def __init__(self, session: Optional[HttpSession] = None) -> None:
        self._session = session or HttpSession()

    def _path(self, request: StreamRequest, region: str) -> str:
        if request.media_type is MediaKind.TV:
            return self._session.endpoint_path(
                SERVICE, "tv", content_id=request.content_id, region=region,
                season=request.season, episode=request.episode,
            )
        return self._session.endpoint_path(SERVICE, "movie", content_id=request.content_id, region=region)

    def _fetch(self, path: str, credential: str) -> Dict[str, Any]:
        resp = self._session.get(SERVICE, path, params={"cookie": credential})
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ParseError(f"{SERVICE} returned non-JSON body") from exc
        if not isinstance(payload, dict):
            raise ParseError(f"{SERVICE} returned unexpected payload")
        return payload

    def resolve(self, request: StreamRequest, context: ResolutionContext) -> TierResult:
        rotation = context.credentials.rotate()
        if not rotation:
            return TierResult.failure(self.name, "No share credentials configured")

        path = self._path(request, context.region)
        for index, credential in rotation:
            try:
                payload = self._fetch(path, credential.secret)
            except ServiceUnavailableError as exc:
                log.warning("legacy_service_down", extra={"credential_index": index, "error": str(exc)})
                return TierResult.failure(self.name, f"Service unavailable: {exc}")
            except (ProviderError, ParseError) as exc:
                log.info("legacy_credential_failed", extra={"credential_index": index, "error": str(exc)})
                continue

            candidates = candidates_from_versions(payload)
            if not payload.get("success") or not candidates:
                log.info("legacy_credential_empty", extra={"credential_index": index})
                continue

            if index != context.credentials.primary_index:
                context.promote(index)
            best = select_best(candidates)
            share_token = payload.get("shareKey") or payload.get("share_key") or None
            return TierResult.from_candidate(self.name, best, candidates, share_token=share_token)

        return TierResult.failure(self.name, "All credentials failed or exhausted")
