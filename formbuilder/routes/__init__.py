"""APIRouter registration for the formbuilder service."""

from __future__ import annotations

from fastapi import APIRouter

from formbuilder.routes.auth import router as auth_router
from formbuilder.routes.dashboard import admin_router, dashboard_router
from formbuilder.routes.health import router as health_router
from formbuilder.routes.responses import router as responses_router
from formbuilder.routes.social import comments_router, likes_router
from formbuilder.routes.templates import router as templates_router
from formbuilder.routes.topics import router as topics_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(templates_router)
api_router.include_router(responses_router)
api_router.include_router(topics_router)
api_router.include_router(comments_router)
api_router.include_router(likes_router)
api_router.include_router(dashboard_router)
api_router.include_router(admin_router)

__all__ = ["api_router", "health_router"]
