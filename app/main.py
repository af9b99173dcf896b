from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.v1 import get_api_router
from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger, level_from_name
from app.services import build_components

logger = get_logger(component="app")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(level=level_from_name(settings.log_level))
    components = build_components(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "app_started",
            environment=settings.environment,
            records_path=str(settings.records_path),
            upload_dir=str(settings.upload_dir),
        )
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    app.state.settings = settings
    app.state.components = components
    app.include_router(get_api_router())
    return app


__all__ = ["create_app"]
