"""Dataclasses used across subtitle providers, ranking and the cue index."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from lime_streamcore.backend.streams.models import MediaKind


class SortStrategy(str, Enum):
    SMART = "smart"
    POPULAR = "popular"
    RECENT = "recent"


@dataclass(slots=True)
class SubtitleQuery:
    external_id: str
    language: str = "eng"
    media_kind: MediaKind = MediaKind.MOVIE
    season: Optional[int] = None
    episode: Optional[int] = None


@dataclass(slots=True)
class SubtitleResult:
    provider: str
    language: str
    release: str
    download_link: str
    format: str = "srt"
    downloads: int = 0
    metadata: dict[str, object] = field(default_factory=dict)

    def as_dict(self) -> dict[str, object]:
        return {
            "provider": self.provider,
            "language": self.language,
            "release": self.release,
            "download_link": self.download_link,
            "format": self.format,
            "downloads": self.downloads,
            "metadata": self.metadata,
        }


@dataclass(slots=True)
class SubtitlePayload:
    file_name: str
    content: bytes
    format: str = "srt"


@dataclass(slots=True, frozen=True)
class SubtitleCue:
    start: float
    end: float
    text: str

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Cue starts after it ends ({self.start} > {self.end})")


@dataclass(slots=True)
class SubtitleTrackState:
    """Position within the ranked results for one language."""

    current_index: int = 0
    total_available: int = 0

    def advance(self) -> int:
        if self.total_available <= 0:
            return 0
        self.current_index = (self.current_index + 1) % self.total_available
        return self.current_index


@dataclass(slots=True)
class LoadedSubtitle:
    srt: str
    language: str
    release: str
    current_index: int
    total_available: int

    def as_dict(self) -> dict[str, object]:
        return {
            "language": self.language,
            "release": self.release,
            "current_index": self.current_index,
            "total_available": self.total_available,
            "srt": self.srt,
        }
