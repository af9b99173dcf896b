from __future__ import annotations

import json
import os
import tempfile
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from pydantic import ValidationError as SchemaError

from app.core.logging import get_logger
from app.domain.errors import NotFoundError, StorageError, StoreCorruptError
from app.domain.models import SubmissionRecord, SubmissionStatus

MUTABLE_FIELDS = frozenset(
    {"artist", "title", "status", "duration_seconds", "thumbnail_wide", "thumbnail_square"}
)

Precondition = Callable[[SubmissionRecord], None]


class SubmissionStore:
    """Flat JSON collection of submission records.

    Every call reads the whole file; every mutation writes the whole
    collection back through an atomic file swap. All calls share one lock so
    read-modify-write cycles never interleave within a process.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self.logger = get_logger(component="submission_store")

    def create(self, **fields: Any) -> SubmissionRecord:
        if not fields.get("file_url"):
            raise ValueError("file_url is required to create a submission")
        with self._lock:
            documents = self._read_all()
            payload = {key: value for key, value in fields.items() if key not in {"id", "created_at", "status"}}
            record = SubmissionRecord(
                **payload,
                id=self._next_id(documents),
                status=SubmissionStatus.pending,
                created_at=datetime.now(timezone.utc),
            )
            documents.append(record.to_document())
            self._write_all(documents)
        self.logger.info("submission_created", submission_id=record.id, file_url=record.file_url)
        return record

    def list(self, status: Optional[SubmissionStatus | str] = None) -> List[SubmissionRecord]:
        wanted = SubmissionStatus(status) if status is not None else None
        with self._lock:
            records = [self._parse(document) for document in self._read_all()]
        if wanted is None:
            return records
        return [record for record in records if record.status == wanted]

    def get(self, submission_id: str) -> SubmissionRecord:
        for record in self.list():
            if record.id == submission_id:
                return record
        raise NotFoundError(submission_id)

    def update_by_id(
        self,
        submission_id: str,
        changes: Mapping[str, Any],
        *,
        precondition: Optional[Precondition] = None,
    ) -> SubmissionRecord:
        """Shallow-merge ``changes`` into one record and persist the collection.

        ``precondition`` runs against the current record under the store lock
        and may raise to abort the update.
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"fields not updatable: {sorted(unknown)}")

        with self._lock:
            documents = self._read_all()
            for index, document in enumerate(documents):
                if str(document.get("id")) != submission_id:
                    continue
                current = self._parse(document)
                if precondition is not None:
                    precondition(current)
                merged = current.model_dump()
                merged.update(changes)
                updated = SubmissionRecord.model_validate(merged)
                documents[index] = updated.to_document()
                self._write_all(documents)
                break
            else:
                raise NotFoundError(submission_id)
        self.logger.info("submission_updated", submission_id=submission_id, fields=sorted(changes))
        return updated

    def _read_all(self) -> List[dict]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"cannot read {self.path}: {exc}") from exc
        if not raw.strip():
            return []
        try:
            documents = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreCorruptError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(documents, list):
            raise StoreCorruptError(f"{self.path} must hold a JSON array")
        return documents

    def _write_all(self, documents: List[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".submissions-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(documents, handle, indent=2, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"cannot write {self.path}: {exc}") from exc

    def _parse(self, document: dict) -> SubmissionRecord:
        try:
            return SubmissionRecord.model_validate(document)
        except SchemaError as exc:
            raise StoreCorruptError(f"invalid record {document.get('id')!r} in {self.path}: {exc}") from exc

    @staticmethod
    def _next_id(documents: List[dict]) -> str:
        latest = 0
        for document in documents:
            try:
                latest = max(latest, int(str(document.get("id"))))
            except ValueError:
                continue
        return str(max(int(time.time() * 1000), latest + 1))


__all__ = ["SubmissionStore", "MUTABLE_FIELDS"]
