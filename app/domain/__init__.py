"""Domain entities and errors shared by the pipeline, store and API."""

from app.domain.errors import (
    InvalidTransitionError,
    NoFileError,
    NotFoundError,
    ProbeError,
    StorageError,
    StoreCorruptError,
    SubmissionError,
    ThumbnailError,
    ValidationError,
)
from app.domain.models import (
    DEFAULT_ARTIST,
    DEFAULT_TITLE,
    DurationWindow,
    SubmissionRecord,
    SubmissionStatus,
    clean_text,
    ensure_transition,
)

__all__ = [
    "DEFAULT_ARTIST",
    "DEFAULT_TITLE",
    "DurationWindow",
    "SubmissionRecord",
    "SubmissionStatus",
    "clean_text",
    "ensure_transition",
    "InvalidTransitionError",
    "NoFileError",
    "NotFoundError",
    "ProbeError",
    "StorageError",
    "StoreCorruptError",
    "SubmissionError",
    "ThumbnailError",
    "ValidationError",
]
