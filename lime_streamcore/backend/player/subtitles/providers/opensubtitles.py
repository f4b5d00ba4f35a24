"""Integration with the OpenSubtitles REST search API."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from lime_streamcore.backend.common.errors import LimeError, ServiceUnavailableError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.player.exceptions import SubtitleDownloadError, SubtitleProviderUnavailable
from lime_streamcore.backend.player.subtitles.models import (
    SubtitlePayload,
    SubtitleQuery,
    SubtitleResult,
)
from lime_streamcore.backend.player.subtitles.providers.base import SubtitleProvider

log = get_logger(__name__)

_SERVICE_NAME = "opensubtitles"


def search_segments(query: SubtitleQuery) -> str:
    """Path segments in the order the API expects: episode, imdbid, season, language."""

    imdb = query.external_id[2:] if query.external_id.startswith("tt") else query.external_id
    parts: List[str] = []
    if query.episode is not None:
        parts.append(f"episode-{query.episode}")
    parts.append(f"imdbid-{imdb}")
    if query.season is not None:
        parts.append(f"season-{query.season}")
    parts.append(f"sublanguageid-{query.language}")
    return "/".join(parts)


def _downloads(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class OpenSubtitlesProvider(SubtitleProvider):
    name = "opensubtitles"

    def __init__(self, session: Optional[HttpSession] = None) -> None:
        self._session = session or HttpSession()

    def search(self, query: SubtitleQuery) -> List[SubtitleResult]:
        path = self._session.endpoint_path(_SERVICE_NAME, "search", segments=search_segments(query))
        try:
            data = self._session.get(_SERVICE_NAME, path).json()
        except ServiceUnavailableError as exc:
            raise SubtitleProviderUnavailable("Subtitle service is unavailable, try again later") from exc
        except (LimeError, ValueError) as exc:
            log.warning("subtitle_search_failed", extra={"provider": self.name, "error": str(exc)})
            return []
        if not isinstance(data, list):
            return []

        results: List[SubtitleResult] = []
        for item in data:
            if not isinstance(item, Mapping):
                continue
            results.append(
                SubtitleResult(
                    provider=self.name,
                    language=str(item.get("SubLanguageID") or query.language),
                    release=str(item.get("MovieName") or ""),
                    download_link=str(item.get("SubDownloadLink") or ""),
                    format=str(item.get("SubFormat") or "srt").lower(),
                    downloads=_downloads(item.get("SubDownloadsCnt")),
                    metadata={
                        "language_name": item.get("LanguageName"),
                        "season": item.get("SeriesSeason"),
                        "episode": item.get("SeriesEpisode"),
                    },
                )
            )
        return results

    def download(self, result: SubtitleResult) -> SubtitlePayload:
        if not result.download_link:
            raise SubtitleDownloadError("No download link available")
        try:
            response = self._session.get(_SERVICE_NAME, result.download_link)
        except LimeError as exc:
            raise SubtitleDownloadError(f"Failed to download subtitle: {exc}") from exc
        file_name = result.download_link.rstrip("/").rsplit("/", 1)[-1] or f"subtitle.{result.format}"
        return SubtitlePayload(file_name=file_name, content=response.content, format=result.format)
