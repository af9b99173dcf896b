from __future__ import annotations

from typing import List, Optional

from app.core.config import Settings
from app.core.logging import get_logger
from app.domain import SubmissionRecord, SubmissionStatus, ensure_transition
from app.store.submissions import SubmissionStore


class ModerationService:
    def __init__(self, settings: Settings, store: SubmissionStore):
        self.settings = settings
        self.store = store
        self.logger = get_logger(component="moderation")

    def approve(self, submission_id: str) -> SubmissionRecord:
        return self._transition(submission_id, SubmissionStatus.approved)

    def reject(self, submission_id: str) -> SubmissionRecord:
        return self._transition(submission_id, SubmissionStatus.rejected)

    def list_submissions(self, status: Optional[SubmissionStatus] = None) -> List[SubmissionRecord]:
        return self.store.list(status)

    def queue(self) -> List[SubmissionRecord]:
        return self.store.list(SubmissionStatus.pending)

    def results(self) -> List[SubmissionRecord]:
        return self.store.list(SubmissionStatus.approved)

    def _transition(self, submission_id: str, target: SubmissionStatus) -> SubmissionRecord:
        allow = self.settings.moderation_allow_retransition

        def _guard(record: SubmissionRecord) -> None:
            ensure_transition(record.id, record.status, target, allow_retransition=allow)

        record = self.store.update_by_id(submission_id, {"status": target}, precondition=_guard)
        self.logger.info("submission_moderated", submission_id=submission_id, status=target.value)
        return record


__all__ = ["ModerationService"]
