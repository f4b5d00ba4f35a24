"""High-level subtitle search, selection, download and cue loading."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from lime_streamcore.backend.common.errors import LimeError, ServiceUnavailableError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.player.exceptions import SubtitleError, SubtitleProviderUnavailable
from lime_streamcore.backend.player.subtitles.cues import CueTrack
from lime_streamcore.backend.player.subtitles.formats import parse_srt
from lime_streamcore.backend.player.subtitles.models import (
    LoadedSubtitle,
    SortStrategy,
    SubtitleQuery,
    SubtitleResult,
    SubtitleTrackState,
)
from lime_streamcore.backend.player.subtitles.providers.base import SubtitleProvider
from lime_streamcore.backend.player.subtitles.providers.opensubtitles import OpenSubtitlesProvider
from lime_streamcore.backend.player.subtitles.ranking import rank
from lime_streamcore.backend.streams.models import MediaKind

log = get_logger(__name__)

ExternalIdLookup = Callable[[int, MediaKind], Optional[str]]
_TitleKey = Tuple[str, int, Optional[int], Optional[int]]


class SubtitleService:
    """Finds, ranks and downloads subtitles, and keeps the active cue track.

    Calling :meth:`load` again for the same title and language moves on to
    the next ranked result, wrapping around, without asking for a new index.
    """

    def __init__(
        self,
        provider: Optional[SubtitleProvider] = None,
        *,
        external_ids: Optional[ExternalIdLookup] = None,
        track: Optional[CueTrack] = None,
    ) -> None:
        self._provider = provider or OpenSubtitlesProvider()
        self._external_ids = external_ids
        self.track = track or CueTrack()
        self._states: Dict[str, SubtitleTrackState] = {}
        self._title: Optional[_TitleKey] = None

    def state(self, language: str) -> Optional[SubtitleTrackState]:
        return self._states.get(language)

    def search(self, query: SubtitleQuery, strategy: SortStrategy = SortStrategy.SMART) -> List[SubtitleResult]:
        return rank(self._provider.search(query), strategy)

    def fetch(
        self,
        content_id: int,
        media_type: MediaKind,
        language: str,
        *,
        external_id: Optional[str] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        strategy: SortStrategy = SortStrategy.SMART,
        index: int = 0,
    ) -> LoadedSubtitle:
        """Download the ``index``-th ranked result (clamped to the last one) as SRT text."""

        if not external_id and self._external_ids is not None:
            try:
                external_id = self._external_ids(content_id, media_type)
            except ServiceUnavailableError as exc:
                raise SubtitleProviderUnavailable(f"Title lookup unavailable: {exc}") from exc
            except LimeError as exc:
                log.info("subtitle_external_id_failed", extra={"content_id": content_id, "error": str(exc)})
                external_id = None
        if not external_id:
            raise SubtitleError("Could not find IMDB ID for this title")

        query = SubtitleQuery(
            external_id=external_id,
            language=language,
            media_kind=media_type,
            season=season if media_type is MediaKind.TV else None,
            episode=episode if media_type is MediaKind.TV else None,
        )
        results = self.search(query, strategy)
        if not results:
            raise SubtitleError("No subtitles found for this title")

        actual = min(max(index, 0), len(results) - 1)
        selected = results[actual]
        if not selected.download_link:
            raise SubtitleError("No download link available")

        srt = self._provider.fetch_srt(selected)
        log.info(
            "subtitle_fetched",
            extra={"language": language, "index": actual, "total": len(results), "format": selected.format},
        )
        return LoadedSubtitle(
            srt=srt,
            language=language,
            release=selected.release,
            current_index=actual,
            total_available=len(results),
        )

    def load(
        self,
        content_id: int,
        media_type: MediaKind,
        language: str,
        *,
        external_id: Optional[str] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        strategy: SortStrategy = SortStrategy.SMART,
    ) -> LoadedSubtitle:
        title: _TitleKey = (media_type.value, content_id, season, episode)
        if title != self._title:
            self._states.clear()
            self._title = title

        state = self._states.get(language)
        index = state.advance() if state is not None else 0

        loaded = self.fetch(
            content_id,
            media_type,
            language,
            external_id=external_id,
            season=season,
            episode=episode,
            strategy=strategy,
            index=index,
        )
        cues = parse_srt(loaded.srt)
        if not cues:
            raise SubtitleError("Subtitle file contained no readable cues")

        self._states[language] = SubtitleTrackState(loaded.current_index, loaded.total_available)
        self.track.replace(cues)
        return loaded

    def unload(self) -> None:
        self.track.clear()
