"""Versioned API routing for clipjury."""

from fastapi import APIRouter

from . import routes_admin, routes_moderation, routes_submissions, routes_system


def get_api_router() -> APIRouter:
    router = APIRouter(prefix="/v1")
    router.include_router(routes_system.router)
    router.include_router(routes_admin.router)
    router.include_router(routes_submissions.router)
    router.include_router(routes_moderation.router)
    return router


__all__ = ["get_api_router"]
