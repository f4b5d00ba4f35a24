"""Ordering strategies for subtitle search results."""

from __future__ import annotations

import re
from typing import List, Sequence

from lime_streamcore.backend.player.subtitles.models import SortStrategy, SubtitleResult

# (substring markers, bonus); each group counts once.
_SOURCE_BONUSES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("web-dl",), 100),
    (("webrip",), 90),
    (("web.",), 85),
    (("bluray", "brrip", "bdrip"), 70),
    (("dvdrip",), 60),
    (("hdtv",), -100),
)

# Streaming-service tags; short, so matched as whole tokens only.
_SERVICE_TAG_RE = re.compile(r"(?<![a-z0-9])(amzn|nf|dsnp)(?![a-z0-9])")
_SERVICE_BONUS = 80

_ACCESSIBILITY_MARKERS = (".hi.", ".cc.")
_ACCESSIBILITY_BONUS = 5

_DOWNLOADS_DIVISOR = 10_000
_DOWNLOADS_CAP = 30.0


def smart_score(result: SubtitleResult) -> float:
    name = result.release.lower()
    score = 0.0
    for markers, bonus in _SOURCE_BONUSES:
        if any(m in name for m in markers):
            score += bonus
    if _SERVICE_TAG_RE.search(name):
        score += _SERVICE_BONUS
    score += min(result.downloads / _DOWNLOADS_DIVISOR, _DOWNLOADS_CAP)
    if any(m in name for m in _ACCESSIBILITY_MARKERS):
        score += _ACCESSIBILITY_BONUS
    return score


def rank(results: Sequence[SubtitleResult], strategy: SortStrategy = SortStrategy.SMART) -> List[SubtitleResult]:
    """Return a new list ordered by ``strategy``; ties keep provider order."""

    ordered = list(results)
    if strategy is SortStrategy.POPULAR:
        ordered.sort(key=lambda r: r.downloads, reverse=True)
    elif strategy is SortStrategy.SMART:
        ordered.sort(key=smart_score, reverse=True)
    return ordered


__all__ = ["rank", "smart_score"]
