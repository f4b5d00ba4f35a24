"""Stream normalisation: classify candidate URLs and pick the best one."""

from __future__ import annotations

import html as html_lib
import re
from typing import List, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from lime_streamcore.backend.common.errors import NotFoundError
from lime_streamcore.backend.streams.models import KIND_PREFERENCE, StreamCandidate, StreamKind

MASTER_LABEL = "Master (Adaptive)"
ORIGINAL_LABEL = "Original"

_ADAPTIVE_MARKER = re.compile(r"\.m3u8|\bhls\b", re.IGNORECASE)
_ORIGINAL_MARKERS = {"org", "original"}

_TAG_RE = re.compile(r"<[^>]*\bdata-url\s*=\s*(['\"])(.*?)\1[^>]*>", re.IGNORECASE | re.DOTALL)
_ATTR_QUALITY_RE = re.compile(r"\bdata-quality\s*=\s*(['\"])(.*?)\1", re.IGNORECASE | re.DOTALL)
_SIZE_RE = re.compile(r"<p[^>]*class\s*=\s*(['\"])[^'\"]*\bsize\b[^'\"]*\1[^>]*>(.*?)</p>", re.IGNORECASE | re.DOTALL)
_STRIP_TAGS_RE = re.compile(r"<[^>]+>")


def classify(url: str) -> StreamKind:
    lowered = url.lower()
    if ".m3u8" in lowered:
        return StreamKind.ADAPTIVE
    if ".mp4" in lowered:
        return StreamKind.PROGRESSIVE
    return StreamKind.OTHER


def is_adaptive(url: str) -> bool:
    return bool(_ADAPTIVE_MARKER.search(url))


def strip_quality_param(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "quality"]
    return urlunsplit(parts._replace(query=urlencode(query)))


def to_master(candidate: StreamCandidate) -> StreamCandidate:
    return StreamCandidate(
        url=strip_quality_param(candidate.url),
        quality=MASTER_LABEL,
        size_label=candidate.size_label,
        kind=StreamKind.ADAPTIVE,
    )


def parse_quality_listing(markup: str) -> List[StreamCandidate]:
    """Extract every ``data-url`` entry (with its quality and size) from a listing page."""

    matches = list(_TAG_RE.finditer(markup or ""))
    candidates: List[StreamCandidate] = []
    for pos, match in enumerate(matches):
        url = html_lib.unescape(match.group(2)).strip()
        if not url:
            continue
        quality_match = _ATTR_QUALITY_RE.search(match.group(0))
        quality = html_lib.unescape(quality_match.group(2)).strip() if quality_match else "Unknown"

        end = matches[pos + 1].start() if pos + 1 < len(matches) else len(markup)
        size_match = _SIZE_RE.search(markup, match.end(), end)
        size = _STRIP_TAGS_RE.sub("", size_match.group(2)).strip() if size_match else "Unknown"

        candidates.append(StreamCandidate(url=url, quality=quality or "Unknown", size_label=size or "Unknown", kind=classify(url)))
    return candidates


def select_best(candidates: Sequence[StreamCandidate]) -> StreamCandidate:
    """Adaptive master first, then an original-quality file, then by kind preference."""

    if not candidates:
        raise NotFoundError("No playable stream found")

    for candidate in candidates:
        if is_adaptive(candidate.url):
            return to_master(candidate)

    for candidate in candidates:
        if candidate.quality.strip().lower() in _ORIGINAL_MARKERS:
            return StreamCandidate(
                url=candidate.url,
                quality=ORIGINAL_LABEL,
                size_label=candidate.size_label,
                kind=StreamKind.PROGRESSIVE,
            )

    return min(candidates, key=lambda c: KIND_PREFERENCE[c.kind])


def normalize_listing(markup: str) -> tuple[StreamCandidate, List[StreamCandidate]]:
    candidates = parse_quality_listing(markup)
    return select_best(candidates), candidates


__all__ = [
    "MASTER_LABEL",
    "ORIGINAL_LABEL",
    "classify",
    "is_adaptive",
    "normalize_listing",
    "parse_quality_listing",
    "select_best",
    "strip_quality_param",
    "to_master",
]
