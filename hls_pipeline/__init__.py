"""Segment pipeline that relays an HLS stream through ffmpeg at playback pace."""

__version__ = "0.1.0"
