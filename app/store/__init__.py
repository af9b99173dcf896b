from app.store.submissions import MUTABLE_FIELDS, SubmissionStore

__all__ = ["SubmissionStore", "MUTABLE_FIELDS"]
