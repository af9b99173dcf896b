from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from app.api import deps
from app.core.config import Settings
from app.ingest.toolchain import check_toolchain

from .schemas import EnvCheckResponse, ReprocessResponse


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[deps.AdminGate])


@router.get("/env-check", response_model=EnvCheckResponse, summary="Validate ffmpeg toolchain")
async def env_check(settings: Settings = Depends(deps.get_app_settings)) -> EnvCheckResponse:
    results = await asyncio.to_thread(check_toolchain, settings)
    return EnvCheckResponse(**results)


@router.post("/reprocess", response_model=ReprocessResponse, summary="Backfill missing thumbnails")
async def reprocess(job: deps.ReprocessDependency) -> ReprocessResponse:
    updated = await asyncio.to_thread(job.run)
    return ReprocessResponse(updated=updated)


__all__ = ["router"]
