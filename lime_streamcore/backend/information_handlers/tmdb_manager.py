"""TMDb helper used to translate catalog ids into external (IMDb) ids.

Both the primary stream tier and the subtitle search key their lookups on the
IMDb id, while the rest of the application identifies titles by TMDb id. Every
request is routed through :class:`HttpSession`; answers are memoized for the
lifetime of the manager since external ids never change.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional, Tuple

from lime_streamcore.backend.common.errors import NotFoundError, ParseError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.streams.models import MediaKind

_SERVICE_NAME = "tmdb"

log = get_logger(__name__)


class TMDbManager:
    """Thin wrapper around TMDb's external-id routes."""

    def __init__(self, *, session: Optional[HttpSession] = None) -> None:
        self._session = session or HttpSession()
        self._memo: Dict[Tuple[str, int], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def external_ids(self, content_id: int, media_type: MediaKind) -> Dict[str, Any]:
        key = (media_type.value, content_id)
        with self._lock:
            cached = self._memo.get(key)
        if cached is not None:
            return dict(cached)

        endpoint = "movie_external_ids" if media_type is MediaKind.MOVIE else "tv_external_ids"
        payload = self._request_json(self._session.endpoint_path(_SERVICE_NAME, endpoint, content_id=content_id))
        with self._lock:
            self._memo[key] = payload
        return dict(payload)

    def imdb_id(self, content_id: int, media_type: MediaKind) -> Optional[str]:
        """Return the ``tt…`` id for a title, or ``None`` when TMDb has none."""

        try:
            value = self.external_ids(content_id, media_type).get("imdb_id")
        except NotFoundError:
            log.info("tmdb_title_not_found", extra={"content_id": content_id, "media_type": media_type.value})
            return None
        return str(value) if value else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _request_json(self, path: str, *, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        response = self._session.get(_SERVICE_NAME, path, params=dict(params or {}))
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError("TMDb returned a non-JSON payload") from exc

        if isinstance(payload, Mapping):
            return dict(payload)

        raise ParseError("Unexpected TMDb payload structure")


__all__ = ["TMDbManager"]
