from __future__ import annotations

from typing import Any, Dict

from app.core.config import Settings
from app.core.logging import get_logger
from app.core.storage import BlobStore
from app.domain import ProbeError, StorageError, SubmissionRecord
from app.ingest.ffprobe_parser import MediaProber
from app.ingest.thumbnails import SQUARE, WIDE, ThumbnailGenerator, render_derivatives
from app.store.submissions import SubmissionStore


class ReprocessJob:
    """Backfills duration and thumbnails on stored records that lack them.

    Additive only: records are never removed and their status is never touched.
    Each record that gains a field is persisted immediately.
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
        self.logger = get_logger(component="reprocess_job")

    def run(self) -> int:
        updated = 0
        records = self.store.list()
        self.logger.info("reprocess_started", records=len(records))
        for record in records:
            if not record.file_url or record.has_all_thumbnails:
                continue
            changes = self._backfill(record)
            if not changes:
                continue
            self.store.update_by_id(record.id, changes)
            updated += 1
        self.logger.info("reprocess_complete", updated=updated)
        return updated

    def _backfill(self, record: SubmissionRecord) -> Dict[str, Any]:
        log = self.logger.bind(submission_id=record.id, file_url=record.file_url)
        try:
            media_path = self.storage.resolve(record.file_url)
        except StorageError as exc:
            log.warning("reprocess_skipped_bad_locator", error=str(exc))
            return {}
        if not media_path.is_file():
            log.warning("reprocess_skipped_missing_blob", path=str(media_path))
            return {}

        changes: Dict[str, Any] = {}
        duration_s = float(record.duration_seconds) if record.duration_seconds else None
        if duration_s is None:
            try:
                duration_s = self.prober.probe(media_path)
            except ProbeError as exc:
                # No frame offset to seek to without a duration.
                log.warning("reprocess_probe_failed", error=str(exc))
                return {}
            else:
                changes["duration_seconds"] = int(round(duration_s))

        missing = [variant for variant in (WIDE, SQUARE) if not getattr(record, f"thumbnail_{variant}")]
        derivatives = render_derivatives(
            self.thumbnailer,
            record.file_url,
            self.settings,
            duration_s=duration_s,
            variants=missing,
        )
        for variant in missing:
            locator = derivatives.get(variant)
            if locator:
                changes[f"thumbnail_{variant}"] = locator
        return changes


__all__ = ["ReprocessJob"]
