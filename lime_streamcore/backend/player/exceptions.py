"""Errors raised by the player-side services (subtitles, playback progress)."""

from __future__ import annotations


class PlayerError(Exception):
    """Base class; the message is meant to be shown to the viewer."""


class SubtitleError(PlayerError):
    """No subtitle could be loaded for the requested title and language."""


class SubtitleProviderUnavailable(SubtitleError):
    """The subtitle service did not answer (server error or timeout)."""


class SubtitleDownloadError(SubtitleError):
    """The selected subtitle could not be downloaded or decompressed."""
