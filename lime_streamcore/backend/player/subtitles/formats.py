"""Subtitle payload transformations: ``bytes -> text -> SRT -> cues``.

Every function here is pure; the network layer only hands over the raw
download and the declared format.
"""

from __future__ import annotations

import gzip
import re
import zlib
from typing import List, Optional

from lime_streamcore.backend.player.exceptions import SubtitleDownloadError
from lime_streamcore.backend.player.subtitles.models import SubtitleCue

_DIALOGUE_PREFIX = "Dialogue:"
_ASS_FORMATS = {"ass", "ssa"}

_ASS_OVERRIDE_RE = re.compile(r"\{[^}]+\}")
_MARKUP_RE = re.compile(r"<[^>]+>")


def decompress(payload: bytes) -> bytes:
    """Gunzip a download; payloads without the gzip magic are returned unchanged."""

    if payload[:2] != b"\x1f\x8b":
        return payload
    try:
        return gzip.decompress(payload)
    except (OSError, EOFError, zlib.error) as exc:
        raise SubtitleDownloadError(f"Corrupt gzip payload: {exc}") from exc


def decode_text(payload: bytes) -> str:
    text = payload.decode("utf-8", errors="replace")
    return text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")


def ass_timestamp_to_srt(value: str) -> str:
    """``H:MM:SS.cc`` (centiseconds) to ``HH:MM:SS,mmm``."""

    parts = value.strip().split(":")
    if len(parts) != 3:
        return "00:00:00,000"
    hours, minutes = parts[0], parts[1]
    seconds, _, centis = parts[2].partition(".")
    try:
        millis = int(centis or "0") * 10
    except ValueError:
        millis = 0
    return f"{hours.zfill(2)}:{minutes.zfill(2)}:{seconds.zfill(2)},{millis:03d}"


def format_srt_timestamp(seconds: float) -> str:
    total_ms = max(0, int(round(seconds * 1000)))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def clean_ass_text(text: str) -> str:
    return (
        _ASS_OVERRIDE_RE.sub("", text)
        .replace("\\N", "\n")
        .replace("\\n", "\n")
        .replace("\\h", " ")
        .strip()
    )


def ass_to_srt(content: str) -> str:
    """Convert ``Dialogue:`` events to numbered SRT blocks.

    Content without any dialogue line is returned unchanged.
    """

    dialogues = [line.strip() for line in content.split("\n") if line.strip().startswith(_DIALOGUE_PREFIX)]
    if not dialogues:
        return content

    blocks: List[str] = []
    for line in dialogues:
        # Layer,Start,End,Style,Name,MarginL,MarginR,MarginV,Effect,Text
        fields = line[len(_DIALOGUE_PREFIX):].strip().split(",", 9)
        if len(fields) < 10:
            continue
        text = clean_ass_text(fields[9])
        if not text:
            continue
        start, end = ass_timestamp_to_srt(fields[1]), ass_timestamp_to_srt(fields[2])
        blocks.append(f"{len(blocks) + 1}\n{start} --> {end}\n{text}\n")

    return "\n".join(blocks) if blocks else content


def convert_to_srt(content: str, declared_format: str) -> str:
    if declared_format.strip().lower() in _ASS_FORMATS:
        return ass_to_srt(content)
    return content


def parse_srt_timestamp(value: str) -> Optional[float]:
    """Seconds from ``HH:MM:SS,mmm`` or ``MM:SS.mmm``; ``None`` when unparseable."""

    parts = value.strip().replace(",", ".").split(":")
    try:
        if len(parts) == 3:
            return int(parts[0]) * 3600 + int(parts[1]) * 60 + float(parts[2])
        if len(parts) == 2:
            return int(parts[0]) * 60 + float(parts[1])
    except ValueError:
        return None
    return None


def parse_srt(content: str) -> List[SubtitleCue]:
    """Parse SRT text into cues sorted by start time; malformed blocks are skipped."""

    cues: List[SubtitleCue] = []
    start: Optional[float] = None
    end: Optional[float] = None
    lines: List[str] = []

    def flush() -> None:
        if start is not None and end is not None and lines and start <= end:
            text = _MARKUP_RE.sub("", "\n".join(lines)).strip()
            if text:
                cues.append(SubtitleCue(start, end, text))

    for raw in content.replace("\r\n", "\n").split("\n"):
        line = raw.strip()
        if "-->" in line:
            flush()
            lines = []
            head, _, tail = line.partition("-->")
            start = parse_srt_timestamp(head)
            end = parse_srt_timestamp(tail.strip().split(" ")[0])
            continue
        if not line:
            flush()
            start = end = None
            lines = []
            continue
        if start is None:
            # Cue index or stray text outside a timed block.
            continue
        lines.append(line)
    flush()

    cues.sort(key=lambda c: c.start)
    return cues


def load_cues(payload: bytes, declared_format: str = "srt") -> List[SubtitleCue]:
    return parse_srt(convert_to_srt(decode_text(decompress(payload)), declared_format))


__all__ = [
    "ass_timestamp_to_srt",
    "ass_to_srt",
    "clean_ass_text",
    "convert_to_srt",
    "decode_text",
    "decompress",
    "format_srt_timestamp",
    "load_cues",
    "parse_srt",
    "parse_srt_timestamp",
]
