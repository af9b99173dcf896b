"""Adapters around the external ffprobe/ffmpeg tools."""

from app.ingest.ffprobe_parser import MediaProbe, MediaProber, parse_duration
from app.ingest.thumbnails import Derivatives, ThumbnailGenerator, ThumbnailResult, render_derivatives
from app.ingest.toolchain import binary_available, check_toolchain

__all__ = [
    "MediaProbe",
    "MediaProber",
    "parse_duration",
    "Derivatives",
    "ThumbnailGenerator",
    "ThumbnailResult",
    "render_derivatives",
    "binary_available",
    "check_toolchain",
]
