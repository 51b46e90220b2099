"""Vertical video feed client: relay-backed fetching and per-slide playback."""

__version__ = "0.1.0"
