"""Continue-watching store: resume positions for partially watched titles."""

from __future__ import annotations

import time
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.persistence.sqlite import KeyValueStore
from lime_streamcore.backend.streams.models import MediaKind

log = get_logger(__name__)

CONTINUE_WATCHING_KEY = "continue_watching"
MAX_ENTRIES = 10
MIN_PROGRESS = 0.05
COMPLETE_PROGRESS = 0.95


class ContinueWatchingEntry(BaseModel):
    content_id: int
    media_type: MediaKind
    position_seconds: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    season: Optional[int] = None
    episode: Optional[int] = None
    last_watched_at: float = 0.0

    @property
    def progress(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.position_seconds / self.duration_seconds

    @property
    def progress_percent(self) -> float:
        return round(self.progress * 100, 2)

    def matches(self, content_id: int, media_type: Optional[MediaKind] = None) -> bool:
        return self.content_id == content_id and (media_type is None or self.media_type is media_type)


class PlaybackProgressStore:
    """Most-recent-first list capped at :data:`MAX_ENTRIES`.

    Saves below 5% progress are ignored and saves above 95% drop the entry as
    finished. Malformed persisted data reads as an empty list.
    """

    def __init__(self, store: Optional[KeyValueStore] = None, *, clock: Callable[[], float] = time.time) -> None:
        self._store = store or KeyValueStore()
        self._clock = clock

    def get_all(self) -> List[ContinueWatchingEntry]:
        raw = self._store.get_json(CONTINUE_WATCHING_KEY, default=[])
        if not isinstance(raw, list):
            log.warning("continue_watching_reset", extra={"reason": "not a list"})
            return []
        try:
            return [ContinueWatchingEntry.model_validate(item) for item in raw]
        except ValidationError as exc:
            log.warning("continue_watching_reset", extra={"reason": str(exc)})
            return []

    def get_one(self, content_id: int, media_type: Optional[MediaKind] = None) -> Optional[ContinueWatchingEntry]:
        return next((e for e in self.get_all() if e.matches(content_id, media_type)), None)

    def save(self, entry: ContinueWatchingEntry) -> Optional[ContinueWatchingEntry]:
        """Apply the progress rules; returns the stored entry, or ``None`` when nothing is kept."""

        if entry.duration_seconds == 0 or entry.progress < MIN_PROGRESS:
            return None
        if entry.progress > COMPLETE_PROGRESS:
            self.remove(entry.content_id, entry.media_type)
            return None

        if not entry.last_watched_at:
            entry = entry.model_copy(update={"last_watched_at": self._clock()})
        entries = [e for e in self.get_all() if not e.matches(entry.content_id, entry.media_type)]
        entries.insert(0, entry)
        self._write(entries[:MAX_ENTRIES])
        return entry

    def remove(self, content_id: int, media_type: Optional[MediaKind] = None) -> None:
        entries = self.get_all()
        kept = [e for e in entries if not e.matches(content_id, media_type)]
        if len(kept) != len(entries):
            self._write(kept)

    def clear_all(self) -> None:
        self._store.delete(CONTINUE_WATCHING_KEY)

    def _write(self, entries: List[ContinueWatchingEntry]) -> None:
        self._store.set_json(CONTINUE_WATCHING_KEY, [e.model_dump(mode="json") for e in entries])


__all__ = ["ContinueWatchingEntry", "PlaybackProgressStore"]
