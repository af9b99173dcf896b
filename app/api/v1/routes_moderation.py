from __future__ import annotations

import asyncio
from typing import List

from fastapi import APIRouter, HTTPException, status

from app.api import deps
from app.domain import InvalidTransitionError, NotFoundError, SubmissionRecord

from . import schemas


router = APIRouter(prefix="/moderation", tags=["moderation"], dependencies=[deps.AdminGate])


def _moderate(action, submission_id: str) -> SubmissionRecord:
    try:
        return action(submission_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="submission_not_found")
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="invalid_transition") from exc


@router.get("/queue", response_model=List[schemas.SubmissionResponse])
async def pending_queue(moderation: deps.ModerationDependency):
    records = await asyncio.to_thread(moderation.queue)
    return [schemas.SubmissionResponse.from_record(record) for record in records]


@router.post("/{submission_id}/approve", response_model=schemas.SubmissionResponse)
async def approve_submission(submission_id: str, moderation: deps.ModerationDependency):
    record = await asyncio.to_thread(_moderate, moderation.approve, submission_id)
    return schemas.SubmissionResponse.from_record(record)


@router.post("/{submission_id}/reject", response_model=schemas.SubmissionResponse)
async def reject_submission(submission_id: str, moderation: deps.ModerationDependency):
    record = await asyncio.to_thread(_moderate, moderation.reject, submission_id)
    return schemas.SubmissionResponse.from_record(record)


__all__ = ["router"]
