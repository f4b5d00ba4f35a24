"""Stream resolution, subtitle acquisition and playback progress engine."""

__version__ = "0.3.0"
