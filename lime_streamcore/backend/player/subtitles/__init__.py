from lime_streamcore.backend.player.subtitles.cues import CueTrack, find_active_cue
from lime_streamcore.backend.player.subtitles.models import (
    LoadedSubtitle,
    SortStrategy,
    SubtitleCue,
    SubtitlePayload,
    SubtitleQuery,
    SubtitleResult,
    SubtitleTrackState,
)
from lime_streamcore.backend.player.subtitles.service import SubtitleService

__all__ = [
    "CueTrack",
    "LoadedSubtitle",
    "SortStrategy",
    "SubtitleCue",
    "SubtitlePayload",
    "SubtitleQuery",
    "SubtitleResult",
    "SubtitleService",
    "SubtitleTrackState",
    "find_active_cue",
]
