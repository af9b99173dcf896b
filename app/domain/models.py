from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import InvalidTransitionError

DEFAULT_ARTIST = "Unknown"
DEFAULT_TITLE = "Untitled"


class SubmissionStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not SubmissionStatus.pending

    def can_transition_to(self, target: "SubmissionStatus") -> bool:
        return self is SubmissionStatus.pending and target.is_terminal


def ensure_transition(
    submission_id: str,
    current: SubmissionStatus,
    target: SubmissionStatus,
    *,
    allow_retransition: bool = False,
) -> None:
    """Raise unless ``current -> target`` is a legal moderation step.

    With ``allow_retransition`` a terminal record may be moved to another
    terminal state, which mirrors the historical overwrite behaviour.
    """
    if current.can_transition_to(target):
        return
    if allow_retransition and target.is_terminal:
        return
    raise InvalidTransitionError(submission_id, current, target)


@dataclass(frozen=True, slots=True)
class DurationWindow:
    """Closed interval of admissible media lengths, in seconds."""

    min_s: float
    max_s: float

    def admits(self, duration_s: float) -> bool:
        return self.min_s <= duration_s <= self.max_s


class SubmissionRecord(BaseModel):
    """A persisted competition entry.

    Stored with camelCase keys; unknown keys already present in the
    collection file survive rewrites.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    artist: str = DEFAULT_ARTIST
    title: str = DEFAULT_TITLE
    # Absent only on documents written before uploads were required.
    file_url: Optional[str] = None
    original_name: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.pending
    duration_seconds: Optional[int] = None
    thumbnail_wide: Optional[str] = None
    thumbnail_square: Optional[str] = None
    created_at: datetime = Field(description="UTC creation timestamp.")

    @property
    def has_all_thumbnails(self) -> bool:
        return bool(self.thumbnail_wide and self.thumbnail_square)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def clean_text(value: Optional[str], max_length: int, default: str) -> str:
    """Trim, bound and default a free-text intake field."""
    if value is None:
        return default
    cleaned = value.strip()[:max_length].strip()
    return cleaned or default


__all__ = [
    "DEFAULT_ARTIST",
    "DEFAULT_TITLE",
    "SubmissionStatus",
    "ensure_transition",
    "DurationWindow",
    "SubmissionRecord",
    "clean_text",
]
