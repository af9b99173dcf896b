from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Query, Request

from app.core.auth import verify_admin_secret
from app.core.config import Settings, get_settings
from app.services import Components, IngestService, ModerationService, ReprocessJob


def get_components(request: Request) -> Components:
    components = request.app.state.components
    if not isinstance(components, Components):  # pragma: no cover
        raise RuntimeError("components_not_configured")
    return components


def get_app_settings() -> Settings:
    return get_settings()


async def require_admin_secret(
    secret: Optional[str] = Query(default=None, description="Shared moderation secret."),
    settings: Settings = Depends(get_app_settings),
) -> None:
    verify_admin_secret(secret, settings)


def get_ingest_service(
    components: Components = Depends(get_components),
    settings: Settings = Depends(get_app_settings),
) -> IngestService:
    return IngestService(
        settings,
        components.storage,
        components.store,
        components.prober,
        components.thumbnailer,
    )


def get_moderation_service(
    components: Components = Depends(get_components),
    settings: Settings = Depends(get_app_settings),
) -> ModerationService:
    return ModerationService(settings, components.store)


def get_reprocess_job(
    components: Components = Depends(get_components),
    settings: Settings = Depends(get_app_settings),
) -> ReprocessJob:
    return ReprocessJob(
        settings,
        components.storage,
        components.store,
        components.prober,
        components.thumbnailer,
    )


IngestDependency = Annotated[IngestService, Depends(get_ingest_service)]
ModerationDependency = Annotated[ModerationService, Depends(get_moderation_service)]
ReprocessDependency = Annotated[ReprocessJob, Depends(get_reprocess_job)]
AdminGate = Depends(require_admin_secret)


__all__ = [
    "get_components",
    "get_app_settings",
    "require_admin_secret",
    "get_ingest_service",
    "get_moderation_service",
    "get_reprocess_job",
    "IngestDependency",
    "ModerationDependency",
    "ReprocessDependency",
    "AdminGate",
]
