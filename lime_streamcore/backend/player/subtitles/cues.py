"""Time-indexed lookup of the active subtitle cue."""

from __future__ import annotations

import threading
from typing import Optional, Sequence

from lime_streamcore.backend.player.subtitles.models import SubtitleCue

MAX_OFFSET_SECONDS = 30.0


def find_active_cue(cues: Sequence[SubtitleCue], t: float) -> Optional[SubtitleCue]:
    """Binary search for a cue with ``start <= t <= end`` in cues sorted by start.

    With overlapping cues, whichever match the search reaches first is
    returned; that is not necessarily the one with the lowest start.
    """

    lo, hi = 0, len(cues) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        cue = cues[mid]
        if cue.end < t:
            lo = mid + 1
        elif cue.start > t:
            hi = mid - 1
        else:
            return cue
    return None


def clamp_offset(offset: float) -> float:
    return max(-MAX_OFFSET_SECONDS, min(MAX_OFFSET_SECONDS, offset))


class CueTrack:
    """Holds the loaded cue list plus the user's sync offset.

    :meth:`replace` swaps the list reference in one assignment, so lookups
    running during a reload see either the old or the new list.
    """

    def __init__(self, cues: Sequence[SubtitleCue] = (), offset: float = 0.0) -> None:
        self._cues: tuple[SubtitleCue, ...] = tuple(sorted(cues, key=lambda c: c.start))
        self._offset = clamp_offset(offset)
        self._lock = threading.Lock()

    @property
    def cues(self) -> tuple[SubtitleCue, ...]:
        return self._cues

    @property
    def offset(self) -> float:
        return self._offset

    @offset.setter
    def offset(self, value: float) -> None:
        self._offset = clamp_offset(value)

    def nudge(self, delta: float) -> float:
        with self._lock:
            self._offset = clamp_offset(self._offset + delta)
            return self._offset

    def replace(self, cues: Sequence[SubtitleCue]) -> None:
        self._cues = tuple(sorted(cues, key=lambda c: c.start))

    def clear(self) -> None:
        self._cues = ()

    def lookup(self, current_time: float) -> Optional[SubtitleCue]:
        cues = self._cues
        return find_active_cue(cues, current_time - self._offset)

    def text_at(self, current_time: float) -> str:
        cue = self.lookup(current_time)
        return cue.text if cue else ""

    def __len__(self) -> int:
        return len(self._cues)


__all__ = ["CueTrack", "MAX_OFFSET_SECONDS", "clamp_offset", "find_active_cue"]
