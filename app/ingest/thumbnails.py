from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

import cv2  # type: ignore

from app.core.config import Settings
from app.core.logging import get_logger
from app.core.storage import BlobStore
from app.domain.errors import ProbeError, StorageError, ThumbnailError

from .ffprobe_parser import MediaProber

WIDE = "wide"
SQUARE = "square"
VARIANTS: Tuple[str, ...] = (WIDE, SQUARE)

logger = get_logger(component="thumbnails")


@dataclass(slots=True)
class ThumbnailResult:
    locator: str
    width: int
    height: int


@dataclass(slots=True)
class Derivatives:
    wide: Optional[str] = None
    square: Optional[str] = None

    def get(self, variant: str) -> Optional[str]:
        return self.wide if variant == WIDE else self.square


class ThumbnailGenerator:
    """Grabs a single still frame from a stored blob with ``ffmpeg``."""

    def __init__(
        self,
        storage: BlobStore,
        ffmpeg_path: str = "ffmpeg",
        timeout_s: Optional[float] = 60.0,
        prober: Optional[MediaProber] = None,
    ):
        self.storage = storage
        self.ffmpeg_path = ffmpeg_path
        self.timeout_s = timeout_s
        self.prober = prober

    def generate(
        self,
        locator: str,
        target_name: str,
        dimensions: Tuple[int, int],
        offset_fraction: float,
        *,
        duration_s: Optional[float] = None,
    ) -> ThumbnailResult:
        """Render ``target_name`` from the frame at ``offset_fraction`` of the duration."""
        try:
            source = self.storage.resolve(locator)
        except StorageError as exc:
            raise ThumbnailError(str(exc)) from exc
        if duration_s is None:
            duration_s = self._probe_duration(source)

        width, height = dimensions
        timestamp = max(duration_s * offset_fraction, 0.0)
        staged = self.storage.stage_path(target_name)
        command = [
            self.ffmpeg_path,
            "-nostdin",
            "-v",
            "error",
            "-ss",
            f"{timestamp:.3f}",
            "-i",
            str(source),
            "-frames:v",
            "1",
            "-vf",
            f"scale={width}:{height}:force_original_aspect_ratio=increase,crop={width}:{height}",
            "-q:v",
            "2",
            "-y",
            str(staged),
        ]
        try:
            subprocess.run(
                command,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            staged.unlink(missing_ok=True)
            raise ThumbnailError(f"ffmpeg timed out after {self.timeout_s}s") from exc
        except subprocess.CalledProcessError as exc:
            staged.unlink(missing_ok=True)
            stderr = exc.stderr.decode(errors="ignore") if isinstance(exc.stderr, bytes) else exc.stderr
            raise ThumbnailError(f"ffmpeg failed: {(stderr or '').strip() or exc.returncode}") from exc
        except FileNotFoundError as exc:
            staged.unlink(missing_ok=True)
            raise ThumbnailError(f"ffmpeg binary not found: {self.ffmpeg_path}") from exc

        try:
            measured = _image_dimensions(staged)
        except RuntimeError as exc:
            staged.unlink(missing_ok=True)
            raise ThumbnailError(str(exc)) from exc

        try:
            published = self.storage.publish(staged, target_name, unique=False)
        except StorageError as exc:
            staged.unlink(missing_ok=True)
            raise ThumbnailError(str(exc)) from exc
        return ThumbnailResult(locator=published, width=measured[0], height=measured[1])

    def _probe_duration(self, source: Path) -> float:
        if self.prober is None:
            raise ThumbnailError("duration unknown and no prober configured")
        try:
            return self.prober.probe(source)
        except ProbeError as exc:
            raise ThumbnailError(f"cannot locate frame offset: {exc}") from exc


def render_derivatives(
    generator: ThumbnailGenerator,
    locator: str,
    settings: Settings,
    *,
    duration_s: Optional[float] = None,
    variants: Iterable[str] = VARIANTS,
) -> Derivatives:
    """Render the wide and square previews for ``locator``, each best-effort."""
    sizes = {WIDE: settings.thumbnail_wide_size, SQUARE: settings.thumbnail_square_size}
    derivatives = Derivatives()
    for variant in variants:
        try:
            target = Path(generator.storage.derivative_locator(locator, variant)).name
            result = generator.generate(
                locator,
                target,
                sizes[variant],
                settings.thumbnail_offset_fraction,
                duration_s=duration_s,
            )
        except (ThumbnailError, StorageError) as exc:
            logger.warning("thumbnail_failed", locator=locator, variant=variant, error=str(exc))
            continue
        setattr(derivatives, variant, result.locator)
        logger.info("thumbnail_created", locator=result.locator, variant=variant, width=result.width, height=result.height)
    return derivatives


def _image_dimensions(image_path: Path) -> Tuple[int, int]:
    image = cv2.imread(str(image_path))
    if image is None:
        raise RuntimeError(f"Failed to read generated thumbnail at {image_path}")
    height, width = image.shape[:2]
    return width, height


__all__ = [
    "WIDE",
    "SQUARE",
    "VARIANTS",
    "ThumbnailResult",
    "Derivatives",
    "ThumbnailGenerator",
    "render_derivatives",
]
