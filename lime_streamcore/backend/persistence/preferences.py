"""User preferences persisted in the key/value store.

Covers the subtitle language list, subtitle text styling and the provider
region (server group) tag. Malformed persisted values fall back to defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.persistence.sqlite import KeyValueStore
from lime_streamcore.config.settings import get_default_region

log = get_logger(__name__)

LANGUAGES_KEY = "subtitle_languages"
STYLING_KEY = "subtitle_styling"
REGION_KEY = "febbox_server"


class SubtitleLanguage(BaseModel):
    code: str = Field(min_length=1, description="Provider language code, e.g. 'eng'.")
    name: str


class SubtitleStyling(BaseModel):
    font_size: int = Field(default=16, ge=6, le=96)
    text_color: str = "#ffffff"
    background_color: str = "#000000"
    background_opacity: float = Field(default=0.75, ge=0.0, le=1.0)
    bottom_offset: int = Field(default=30, ge=0)
    font_weight: Literal["400", "500", "600", "700", "bold"] = "400"
    border_radius: int = Field(default=4, ge=0)
    padding_horizontal: int = Field(default=12, ge=0)
    padding_vertical: int = Field(default=6, ge=0)
    text_shadow: bool = False


@dataclass(frozen=True)
class Region:
    group_id: str
    country: str
    description: str


AVAILABLE_REGIONS: tuple[Region, ...] = (
    Region("USA6", "US WEST", "Western United States"),
    Region("USA7", "US EAST", "Eastern United States"),
    Region("USA5", "US MIDDLE", "Middle United States"),
    Region("UK3", "UK", "London England"),
    Region("CA1", "CA", "Canada"),
    Region("FR1", "FR", "France"),
    Region("DE2", "DE", "Germany"),
    Region("SG1", "SG", "Singapore"),
    Region("SZ", "CN", "China MainLand"),
)


def find_region(group_id: str) -> Optional[Region]:
    for region in AVAILABLE_REGIONS:
        if region.group_id == group_id:
            return region
    return None


class PreferencesStore:
    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self._store = store or KeyValueStore()

    # -- languages -------------------------------------------------------
    def languages(self) -> List[SubtitleLanguage]:
        raw = self._store.get_json(LANGUAGES_KEY, default=[])
        if not isinstance(raw, list):
            return []
        try:
            return [SubtitleLanguage.model_validate(item) for item in raw]
        except ValidationError:
            log.warning("subtitle_languages_reset")
            return []

    def add_language(self, code: str, name: str) -> List[SubtitleLanguage]:
        languages = self.languages()
        if not any(lang.code == code for lang in languages):
            languages.append(SubtitleLanguage(code=code, name=name))
            self._save_languages(languages)
        return languages

    def remove_language(self, code: str) -> List[SubtitleLanguage]:
        languages = [lang for lang in self.languages() if lang.code != code]
        self._save_languages(languages)
        return languages

    def _save_languages(self, languages: List[SubtitleLanguage]) -> None:
        self._store.set_json(LANGUAGES_KEY, [lang.model_dump() for lang in languages])

    # -- styling ---------------------------------------------------------
    def styling(self) -> SubtitleStyling:
        raw = self._store.get_json(STYLING_KEY)
        if raw is None:
            return SubtitleStyling()
        try:
            return SubtitleStyling.model_validate(raw)
        except ValidationError:
            log.warning("subtitle_styling_reset")
            return SubtitleStyling()

    def update_styling(self, changes: Mapping[str, Any]) -> SubtitleStyling:
        merged = {**self.styling().model_dump(), **dict(changes)}
        styling = SubtitleStyling.model_validate(merged)
        self._store.set_json(STYLING_KEY, styling.model_dump())
        return styling

    def reset_styling(self) -> SubtitleStyling:
        styling = SubtitleStyling()
        self._store.set_json(STYLING_KEY, styling.model_dump())
        return styling

    # -- region ----------------------------------------------------------
    def region(self) -> str:
        stored = self._store.get(REGION_KEY)
        if stored and find_region(stored) is not None:
            return stored
        return get_default_region()

    def set_region(self, group_id: str) -> Region:
        region = find_region(group_id)
        if region is None:
            raise ValueError(f"Unknown region '{group_id}'")
        self._store.set(REGION_KEY, region.group_id)
        return region


__all__ = [
    "AVAILABLE_REGIONS",
    "PreferencesStore",
    "Region",
    "SubtitleLanguage",
    "SubtitleStyling",
    "find_region",
]
