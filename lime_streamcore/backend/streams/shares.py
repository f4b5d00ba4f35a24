"""Share resolution: locate the playable file inside a share and cache share references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from lime_streamcore.backend.common.errors import NotFoundError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.persistence.sqlite import KeyValueStore
from lime_streamcore.backend.streams.febbox import FebBoxClient, parse_share_token
from lime_streamcore.backend.streams.models import (
    SHARE_KEY_PREFIX,
    MediaKind,
    RemoteFile,
    ShareReference,
    share_storage_key,
)

log = get_logger(__name__)

VIDEO_EXTENSIONS = frozenset({"mp4", "mkv", "avi", "mov", "m4v", "webm", "ts", "wmv", "flv"})

_STORAGE_KEY_RE = re.compile(r"share_key:(?P<kind>movie|tv)_(?P<id>\d+)(?:_s(?P<season>\d+))?")

_EPISODE_RE = re.compile(r"S0*(\d+)\s*[._-]?\s*E0*(\d+)", re.IGNORECASE)

_FILE_ID_PATTERNS = (
    re.compile(r"\bdata-id\s*=\s*['\"](\d+)['\"]", re.IGNORECASE),
    re.compile(r"\bdata-fid\s*=\s*['\"](\d+)['\"]", re.IGNORECASE),
    re.compile(r"['\"]?\bfid['\"]?\s*[:=]\s*['\"]?(\d+)", re.IGNORECASE),
    re.compile(r"['\"]?\bfile_id['\"]?\s*[:=]\s*['\"]?(\d+)", re.IGNORECASE),
)


def season_folder_pattern(season: int) -> re.Pattern[str]:
    return re.compile(rf"season\s*0*{season}\b", re.IGNORECASE)


def episode_number(name: str, season: int) -> Optional[int]:
    """Episode number from an ``SxxEyy`` marker, if the marker belongs to ``season``."""

    match = _EPISODE_RE.search(name)
    if match is None or int(match.group(1)) != season:
        return None
    return int(match.group(2))


def extract_file_id(markup: str) -> Optional[str]:
    for pattern in _FILE_ID_PATTERNS:
        match = pattern.search(markup or "")
        if match:
            return match.group(1)
    return None


def is_video(entry: RemoteFile) -> bool:
    return not entry.is_directory and (not entry.extension or entry.extension.lower() in VIDEO_EXTENSIONS)


def largest(files: Sequence[RemoteFile]) -> RemoteFile:
    # Size stands in for quality; on ties the earliest listed file wins.
    return max(files, key=lambda f: f.size_bytes)


@dataclass(slots=True, frozen=True)
class ResolvedShareFile:
    share_token: str
    file_id: str
    name: Optional[str] = None


class ShareResolver:
    """Finds the single file to play inside a share.

    A share with an empty root listing is a single-file share and its id is read
    from the share page. Folder shares are walked: TV episodes live in a
    ``Season N`` folder, movies in the root.
    """

    def __init__(self, client: FebBoxClient, *, page_budget: Optional[int] = None) -> None:
        self._client = client
        self._page_budget = page_budget

    @property
    def page_budget(self) -> int:
        return self._page_budget if self._page_budget is not None else self._client.folder_page_budget

    def _pages(self, share_token: str, credential: str, parent_id: str = "0",
               first: Optional[List[RemoteFile]] = None) -> Iterator[List[RemoteFile]]:
        seen: set[str] = set()
        for page in range(1, self.page_budget + 1):
            if page == 1 and first is not None:
                entries = first
            else:
                entries = self._client.list_folder(share_token, credential, parent_id=parent_id, page=page)
            fresh = [e for e in entries if e.id not in seen]
            if not fresh:
                return
            seen.update(e.id for e in fresh)
            yield fresh

    def resolve(
        self,
        share_token: str,
        credential: str,
        media_type: MediaKind,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> ResolvedShareFile:
        root = self._client.list_folder(share_token, credential)
        if not root:
            file_id = extract_file_id(self._client.share_page(share_token, credential))
            if not file_id:
                raise NotFoundError("Could not find file id on share page")
            return ResolvedShareFile(share_token, file_id)

        if media_type is MediaKind.TV:
            if season is None or episode is None:
                raise ValueError("Season and episode required for TV")
            picked = self._episode_file(share_token, credential, root, season, episode)
        else:
            files = [e for entries in self._pages(share_token, credential, first=root) for e in entries if is_video(e)]
            if not files:
                raise NotFoundError("No video files in share")
            picked = largest(files)

        log.debug("share_file_selected", extra={"share_token": share_token, "file_id": picked.id, "size": picked.size_bytes})
        return ResolvedShareFile(share_token, picked.id, picked.name)

    def _episode_file(self, share_token: str, credential: str, root: List[RemoteFile],
                      season: int, episode: int) -> RemoteFile:
        pattern = season_folder_pattern(season)
        folder: Optional[RemoteFile] = None
        for entries in self._pages(share_token, credential, first=root):
            folder = next((e for e in entries if e.is_directory and pattern.search(e.name)), None)
            if folder is not None:
                break
        if folder is None:
            raise NotFoundError(f"Season {season} folder not found")

        matches = [
            e
            for entries in self._pages(share_token, credential, parent_id=folder.id)
            for e in entries
            if not e.is_directory and episode_number(e.name, season) == episode
        ]
        if not matches:
            raise NotFoundError(f"S{season:02d}E{episode:02d} not found in share")
        return largest(matches)


class ShareReferenceStore:
    """Cached share tokens per title (and per season for TV)."""

    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self._store = store or KeyValueStore()

    def get(self, content_id: int, media_type: MediaKind, season: Optional[int] = None) -> Optional[ShareReference]:
        token = self._store.get(share_storage_key(content_id, media_type, season))
        if not token:
            return None
        return ShareReference(content_id, media_type, token, season if media_type is MediaKind.TV else None)

    def save(self, reference: ShareReference) -> None:
        self._store.set(reference.storage_key, reference.token)

    def save_input(self, content_id: int, media_type: MediaKind, value: str,
                   season: Optional[int] = None) -> ShareReference:
        token = parse_share_token(value)
        if not token:
            raise ValueError("Not a share link or token")
        reference = ShareReference(content_id, media_type, token, season if media_type is MediaKind.TV else None)
        self.save(reference)
        return reference

    def clear(self, content_id: int, media_type: MediaKind, season: Optional[int] = None) -> None:
        self._store.delete(share_storage_key(content_id, media_type, season))

    def all(self) -> List[ShareReference]:
        references: List[ShareReference] = []
        for key, token in self._store.items(SHARE_KEY_PREFIX).items():
            match = _STORAGE_KEY_RE.fullmatch(key)
            if match is None or not token:
                continue
            season = match.group("season")
            references.append(
                ShareReference(int(match.group("id")), MediaKind(match.group("kind")), token, int(season) if season else None)
            )
        return references


__all__ = [
    "ResolvedShareFile",
    "ShareReferenceStore",
    "ShareResolver",
    "episode_number",
    "extract_file_id",
    "largest",
    "season_folder_pattern",
]
