"""Dataclasses shared by the stream resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class MediaKind(str, Enum):
    MOVIE = "movie"
    TV = "tv"


class StreamKind(str, Enum):
    ADAPTIVE = "adaptive"
    PROGRESSIVE = "progressive"
    OTHER = "other"


# Lower rank wins when choosing between candidates.
KIND_PREFERENCE: dict[StreamKind, int] = {
    StreamKind.ADAPTIVE: 0,
    StreamKind.PROGRESSIVE: 1,
    StreamKind.OTHER: 2,
}


@dataclass(slots=True)
class RemoteFile:
    id: str
    name: str
    size_bytes: int
    extension: str
    is_directory: bool


@dataclass(slots=True)
class StreamCandidate:
    url: str
    quality: str
    size_label: str
    kind: StreamKind

    def as_dict(self) -> dict[str, object]:
        return {
            "url": self.url,
            "quality": self.quality,
            "size_label": self.size_label,
            "kind": self.kind.value,
        }


@dataclass(slots=True)
class ShareReference:
    content_id: int
    media_type: MediaKind
    token: str
    season: Optional[int] = None

    @property
    def storage_key(self) -> str:
        return share_storage_key(self.content_id, self.media_type, self.season)


SHARE_KEY_PREFIX = "share_key:"


def share_storage_key(content_id: int, media_type: MediaKind, season: Optional[int] = None) -> str:
    base = f"{SHARE_KEY_PREFIX}{media_type.value}_{content_id}"
    if media_type is MediaKind.TV and season:
        return f"{base}_s{season}"
    return base


@dataclass(slots=True)
class StreamRequest:
    content_id: int
    media_type: MediaKind
    external_id: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    share_reference: Optional[ShareReference] = None

    def __post_init__(self) -> None:
        if self.media_type is MediaKind.TV and (self.season is None or self.episode is None):
            raise ValueError("Season and episode required for TV")


@dataclass(slots=True)
class TierResult:
    success: bool
    tier: str
    stream_url: Optional[str] = None
    kind: Optional[StreamKind] = None
    quality: Optional[str] = None
    size_label: Optional[str] = None
    share_token: Optional[str] = None
    error: Optional[str] = None
    candidates: List[StreamCandidate] = field(default_factory=list)

    @classmethod
    def from_candidate(
        cls,
        tier: str,
        best: StreamCandidate,
        candidates: List[StreamCandidate],
        *,
        share_token: Optional[str] = None,
    ) -> "TierResult":
        return cls(
            success=True,
            tier=tier,
            stream_url=best.url,
            kind=best.kind,
            quality=best.quality,
            size_label=best.size_label,
            share_token=share_token,
            candidates=list(candidates),
        )

    @classmethod
    def failure(cls, tier: str, error: str) -> "TierResult":
        return cls(success=False, tier=tier, error=error)

    def as_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "tier": self.tier,
            "stream_url": self.stream_url,
            "kind": self.kind.value if self.kind else None,
            "quality": self.quality,
            "size_label": self.size_label,
            "share_token": self.share_token,
            "error": self.error,
            "candidates": [c.as_dict() for c in self.candidates],
        }
