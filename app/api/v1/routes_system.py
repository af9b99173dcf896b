from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api import deps
from app.core.config import Settings

from .schemas import HealthResponse


router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health(settings: Settings = Depends(deps.get_app_settings)) -> HealthResponse:
    return HealthResponse(version=settings.version, environment=settings.environment)


__all__ = ["router"]
