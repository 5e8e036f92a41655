"""
API Routes package.
"""
from fastapi import APIRouter

from app.api.routes.health import router as health_router

# Main API router
api_router = APIRouter()

api_router.include_router(health_router)

__all__ = [
    "api_router",
    "health_router",
]
