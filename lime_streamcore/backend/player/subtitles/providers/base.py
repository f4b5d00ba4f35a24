"""Contract shared by subtitle search backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from lime_streamcore.backend.player.subtitles.formats import convert_to_srt, decode_text, decompress
from lime_streamcore.backend.player.subtitles.models import SubtitlePayload, SubtitleQuery, SubtitleResult


class SubtitleProvider(ABC):
    """A searchable subtitle source.

    Implementations only talk to their backend; turning a downloaded payload
    into SRT text is shared and lives in :meth:`fetch_srt`.
    """

    name: str = "provider"

    @abstractmethod
    def search(self, query: SubtitleQuery) -> List[SubtitleResult]:
        """Unranked results in provider order; an empty list when nothing matches."""

    @abstractmethod
    def download(self, result: SubtitleResult) -> SubtitlePayload:
        """Raw (possibly gzip-compressed) bytes for one result."""

    def fetch_srt(self, result: SubtitleResult) -> str:
        payload = self.download(result)
        return convert_to_srt(decode_text(decompress(payload.content)), result.format or payload.format)
