"""Main API router combining all sub-routers."""

from fastapi import APIRouter

from backbar.api.auth import router as session_router
from backbar.api.health import router as health_router
from backbar.api.items import router as items_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(session_router)
api_router.include_router(items_router)
