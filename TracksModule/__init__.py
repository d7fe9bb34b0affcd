"""Convenience exports for the tracks module."""

from .tracks import Track, TrackPage, TrackRow, list_tracks

__all__ = ["Track", "TrackPage", "TrackRow", "list_tracks"]
