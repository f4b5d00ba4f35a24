"""Flat key/value persistence (SQLite) and the user preference records stored in it."""

from .preferences import AVAILABLE_REGIONS, PreferencesStore, Region, SubtitleLanguage, SubtitleStyling
from .sqlite import KeyValueStore, connect, connection

__all__ = [
    "AVAILABLE_REGIONS",
    "KeyValueStore",
    "PreferencesStore",
    "Region",
    "SubtitleLanguage",
    "SubtitleStyling",
    "connect",
    "connection",
]
