from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import JSONResponse

from app.api import deps
from app.core.config import Settings
from app.core.logging import get_logger
from app.domain import NoFileError, StorageError, SubmissionStatus, ValidationError

from . import schemas

logger = get_logger(component="submissions_api")

router = APIRouter(prefix="/submissions", tags=["submissions"])

_CHUNK_SIZE = 1024 * 1024


async def _spool_upload(file: UploadFile, limit_bytes: int) -> Path:
    """Copy the multipart upload to a temp file, enforcing the size limit."""
    suffix = Path(file.filename or "").suffix or ".bin"
    written = 0
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        tmp_path = Path(tmp.name)
        try:
            while True:
                chunk = await file.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > limit_bytes:
                    raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="upload_too_large")
                tmp.write(chunk)
        except HTTPException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    await file.close()
    return tmp_path


@router.post("", response_model=schemas.SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_submission(
    service: deps.IngestDependency,
    file: Optional[UploadFile] = File(default=None),
    artist: Optional[str] = Form(default=None),
    title: Optional[str] = Form(default=None),
    settings: Settings = Depends(deps.get_app_settings),
):
    tmp_path: Optional[Path] = None
    if file is not None and file.filename:
        tmp_path = await _spool_upload(file, settings.max_upload_size_bytes)

    try:
        record = await service.ingest(
            media_path=tmp_path,
            original_name=file.filename if file is not None else None,
            artist=artist,
            title=title,
        )
    except NoFileError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="no_file")
    except ValidationError as exc:
        payload = schemas.DurationRejection(
            message=str(exc),
            observed_duration_s=exc.observed_duration_s,
            min_duration_s=exc.min_duration_s,
            max_duration_s=exc.max_duration_s,
        )
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload.model_dump())
    except StorageError as exc:
        logger.error("submission_storage_failed", error=str(exc))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="storage_failed") from exc
    finally:
        # The blob store moves the temp file; anything left here was never stored.
        if tmp_path is not None and tmp_path.exists():
            try:
                os.remove(tmp_path)
            except OSError as cleanup_error:
                logger.warning("upload_tempfile_cleanup_failed", path=str(tmp_path), error=str(cleanup_error))
    return schemas.SubmissionResponse.from_record(record)


@router.get("", response_model=List[schemas.SubmissionResponse])
async def list_submissions(
    moderation: deps.ModerationDependency,
    status_filter: Optional[SubmissionStatus] = Query(default=None, alias="status"),
):
    records = await asyncio.to_thread(moderation.list_submissions, status_filter)
    return [schemas.SubmissionResponse.from_record(record) for record in records]


__all__ = ["router"]
