"""Error taxonomy for submission intake, storage and moderation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.domain.models import SubmissionStatus


class SubmissionError(Exception):
    """Base exception for submission errors."""


class NoFileError(SubmissionError):
    """Raised when an intake request carries no media file."""

    def __init__(self, message: str = "no media file supplied") -> None:
        super().__init__(message)


class StorageError(SubmissionError):
    """Raised when a blob cannot be written, moved or resolved."""


class ProbeError(SubmissionError):
    """Raised when the duration of a media file cannot be determined."""


class ThumbnailError(SubmissionError):
    """Raised when a thumbnail could not be rendered. Callers treat it as non-fatal."""


class StoreCorruptError(SubmissionError):
    """Raised when the persisted record collection cannot be parsed."""


class ValidationError(SubmissionError):
    """Raised when a submission is rejected by the duration policy."""

    def __init__(
        self,
        reason: str,
        observed_duration_s: Optional[float] = None,
        min_duration_s: Optional[float] = None,
        max_duration_s: Optional[float] = None,
    ) -> None:
        self.reason = reason
        self.observed_duration_s = observed_duration_s
        self.min_duration_s = min_duration_s
        self.max_duration_s = max_duration_s
        message = reason
        if observed_duration_s is not None and min_duration_s is not None and max_duration_s is not None:
            message = (
                f"{reason}: {observed_duration_s:g}s outside {min_duration_s:g}-{max_duration_s:g}s"
            )
        super().__init__(message)


class NotFoundError(SubmissionError):
    """Raised when no submission exists for the requested identifier."""

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(f"Submission not found: {submission_id}")


class InvalidTransitionError(SubmissionError):
    """Raised when a moderation action targets a record that is no longer pending."""

    def __init__(self, submission_id: str, current: "SubmissionStatus", target: "SubmissionStatus") -> None:
        self.submission_id = submission_id
        self.current = current
        self.target = target
        super().__init__(f"Submission {submission_id} cannot move from {current.value} to {target.value}")


__all__ = [
    "SubmissionError",
    "NoFileError",
    "StorageError",
    "ProbeError",
    "ThumbnailError",
    "StoreCorruptError",
    "ValidationError",
    "NotFoundError",
    "InvalidTransitionError",
]
