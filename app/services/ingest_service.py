from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from app.core.config import Settings
from app.core.logging import get_logger
from app.core.storage import BlobStore
from app.domain import (
    DEFAULT_ARTIST,
    DEFAULT_TITLE,
    NoFileError,
    ProbeError,
    StorageError,
    SubmissionRecord,
    ValidationError,
    clean_text,
)
from app.ingest.ffprobe_parser import MediaProber
from app.ingest.thumbnails import ThumbnailGenerator, render_derivatives
from app.store.submissions import SubmissionStore


class IngestService:
    """Runs one upload through store, probe, duration check, thumbnails and record creation.

    Storage, probe and window failures abort the call; thumbnail failures only
    leave the corresponding field empty.
    """

    def __init__(
        self,
        settings: Settings,
        storage: BlobStore,
        store: SubmissionStore,
        prober: MediaProber,
        thumbnailer: ThumbnailGenerator,
    ):
        self.settings = settings
        self.storage = storage
        self.store = store
        self.prober = prober
        self.thumbnailer = thumbnailer
        self.logger = get_logger(component="ingest_service")

    async def ingest(
        self,
        *,
        media_path: Optional[Path],
        original_name: Optional[str],
        artist: Optional[str],
        title: Optional[str],
    ) -> SubmissionRecord:
        if media_path is None or not Path(media_path).is_file():
            raise NoFileError()

        file_url = await asyncio.to_thread(self.storage.store, Path(media_path), original_name or Path(media_path).name)
        log = self.logger.bind(file_url=file_url)

        try:
            duration_s = await asyncio.to_thread(self.prober.probe, self.storage.resolve(file_url))
        except ProbeError as exc:
            log.warning("probe_failed", error=str(exc))
            await self._discard(file_url)
            raise ValidationError("duration probe failed") from exc

        window = self.settings.duration_window
        if not window.admits(duration_s):
            log.info("duration_rejected", duration_s=duration_s, min_s=window.min_s, max_s=window.max_s)
            await self._discard(file_url)
            raise ValidationError("duration out of range", duration_s, window.min_s, window.max_s)

        derivatives = await asyncio.to_thread(
            render_derivatives,
            self.thumbnailer,
            file_url,
            self.settings,
            duration_s=duration_s,
        )

        record = await asyncio.to_thread(
            self.store.create,
            artist=clean_text(artist, self.settings.artist_max_length, DEFAULT_ARTIST),
            title=clean_text(title, self.settings.title_max_length, DEFAULT_TITLE),
            file_url=file_url,
            original_name=original_name,
            duration_seconds=int(round(duration_s)),
            thumbnail_wide=derivatives.wide,
            thumbnail_square=derivatives.square,
        )
        log.info("submission_ingested", submission_id=record.id, duration_s=duration_s)
        return record

    async def _discard(self, file_url: str) -> None:
        try:
            await asyncio.to_thread(self.storage.delete, file_url)
        except StorageError as exc:
            self.logger.error("blob_discard_failed", file_url=file_url, error=str(exc))


__all__ = ["IngestService"]
