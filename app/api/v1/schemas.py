from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain import SubmissionRecord, SubmissionStatus


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    version: Optional[str] = None
    environment: Optional[str] = None
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EnvCheckResponse(BaseModel):
    ffmpeg: bool
    ffprobe: bool


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    artist: str
    title: str
    file_url: Optional[str] = None
    status: SubmissionStatus
    duration_seconds: Optional[int] = None
    thumbnail_wide: Optional[str] = None
    thumbnail_square: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_record(cls, record: SubmissionRecord) -> "SubmissionResponse":
        return cls.model_validate(record.model_dump(include=set(cls.model_fields)))


class DurationRejection(BaseModel):
    error: str = "validation_failed"
    message: str
    observed_duration_s: Optional[float] = None
    min_duration_s: Optional[float] = None
    max_duration_s: Optional[float] = None


class ReprocessResponse(BaseModel):
    updated: int


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None


__all__ = [
    "HealthResponse",
    "EnvCheckResponse",
    "SubmissionResponse",
    "DurationRejection",
    "ReprocessResponse",
    "ErrorResponse",
]
