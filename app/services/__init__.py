"""Service layer wiring for the submission pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings
from app.core.storage import LocalBlobStore, get_storage
from app.ingest.ffprobe_parser import MediaProber
from app.ingest.thumbnails import ThumbnailGenerator
from app.services.ingest_service import IngestService
from app.services.moderation_service import ModerationService
from app.services.reprocess_service import ReprocessJob
from app.store.submissions import SubmissionStore


@dataclass(slots=True)
class Components:
    storage: LocalBlobStore
    store: SubmissionStore
    prober: MediaProber
    thumbnailer: ThumbnailGenerator


def build_components(settings: Settings) -> Components:
    storage = get_storage(settings)
    prober = MediaProber(settings.ffprobe_path, timeout_s=settings.probe_timeout_s)
    return Components(
        storage=storage,
        store=SubmissionStore(settings.records_path),
        prober=prober,
        thumbnailer=ThumbnailGenerator(
            storage,
            ffmpeg_path=settings.ffmpeg_path,
            timeout_s=settings.thumbnail_timeout_s,
            prober=prober,
        ),
    )


__all__ = [
    "Components",
    "build_components",
    "IngestService",
    "ModerationService",
    "ReprocessJob",
]
