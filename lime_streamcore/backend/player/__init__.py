"""Player-side services: subtitle acquisition, cue lookup and playback progress."""

from lime_streamcore.backend.player.exceptions import PlayerError, SubtitleError
from lime_streamcore.backend.player.progress import ContinueWatchingEntry, PlaybackProgressStore
from lime_streamcore.backend.player.subtitles.models import (
    SubtitleQuery,
    SubtitleResult,
)

__all__ = [
    "ContinueWatchingEntry",
    "PlaybackProgressStore",
    "PlayerError",
    "SubtitleError",
    "SubtitleQuery",
    "SubtitleResult",
]
