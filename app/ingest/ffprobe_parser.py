from __future__ import annotations

import json
import math
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.logging import get_logger
from app.domain.errors import ProbeError

logger = get_logger(component="media_prober")


@dataclass(slots=True)
class MediaProbe:
    """Summary of the structural metadata ffprobe reports for a file."""

    duration_s: float
    container: str
    video_streams: int
    audio_streams: int

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_duration(raw: Dict[str, Any]) -> float:
    """Extract the container duration in seconds from ffprobe JSON.

    Args:
        raw: The decoded ``ffprobe -show_format`` output.

    Returns:
        The duration in seconds.

    Raises:
        ProbeError: If no usable, positive duration is present.
    """
    format_info = raw.get("format") or {}
    value = format_info.get("duration")
    if value in (None, "N/A", ""):
        raise ProbeError("duration_unavailable")
    try:
        duration = float(value)
    except (TypeError, ValueError) as exc:
        raise ProbeError(f"duration_unparseable:{value!r}") from exc
    if not math.isfinite(duration) or duration <= 0:
        raise ProbeError(f"duration_not_positive:{value!r}")
    return duration


def summarise_probe(raw: Dict[str, Any]) -> MediaProbe:
    format_info = raw.get("format") or {}
    streams = raw.get("streams") or []
    return MediaProbe(
        duration_s=parse_duration(raw),
        container=format_info.get("format_name") or format_info.get("format_long_name") or "unknown",
        video_streams=sum(1 for stream in streams if stream.get("codec_type") == "video"),
        audio_streams=sum(1 for stream in streams if stream.get("codec_type") == "audio"),
    )


class MediaProber:
    """Reads media structure through an external ``ffprobe`` process. Never writes."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout_s: Optional[float] = 30.0):
        self.ffprobe_path = ffprobe_path
        self.timeout_s = timeout_s

    def probe(self, media_path: Path) -> float:
        return parse_duration(self._run_ffprobe(media_path))

    def inspect(self, media_path: Path) -> MediaProbe:
        return summarise_probe(self._run_ffprobe(media_path))

    def _run_ffprobe(self, target: Path) -> Dict[str, Any]:
        command = [
            self.ffprobe_path,
            "-v",
            "error",
            "-show_format",
            "-show_streams",
            "-print_format",
            "json",
            str(target),
        ]
        try:
            proc = subprocess.run(
                command,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            logger.warning("probe_timeout", path=str(target), timeout_s=self.timeout_s)
            raise ProbeError(f"ffprobe timed out after {self.timeout_s}s") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            logger.warning("probe_failed", path=str(target), stderr=stderr)
            raise ProbeError(f"ffprobe failed: {stderr or exc.returncode}") from exc
        except FileNotFoundError as exc:
            raise ProbeError(f"ffprobe binary not found: {self.ffprobe_path}") from exc
        try:
            return json.loads(proc.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise ProbeError("ffprobe returned invalid JSON") from exc


__all__ = ["MediaProbe", "MediaProber", "parse_duration", "summarise_probe"]
