from __future__ import annotations

import subprocess
from typing import Dict

from app.core.config import Settings


def binary_available(path: str, timeout_s: float = 10.0) -> bool:
    """Return True when ``path -version`` runs and exits cleanly."""
    try:
        subprocess.run(
            [path, "-version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
            timeout=timeout_s,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return True


def check_toolchain(settings: Settings) -> Dict[str, bool]:
    return {
        "ffmpeg": binary_available(settings.ffmpeg_path),
        "ffprobe": binary_available(settings.ffprobe_path),
    }


__all__ = ["binary_available", "check_toolchain"]
