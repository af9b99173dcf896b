from __future__ import annotations

import hmac
from typing import Optional

from fastapi import HTTPException, status

from .config import Settings


def verify_admin_secret(secret: Optional[str], settings: Settings) -> None:
    # Placeholder gate; swap for real authentication before exposing publicly.
    expected = settings.secrets.admin_secret
    if not secret or not hmac.compare_digest(secret.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="invalid_secret")


__all__ = ["verify_admin_secret"]
