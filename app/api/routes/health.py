"""
Health check routes.
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import redis.asyncio as redis

from app.core.database import get_db
from app.core.config import settings
from app.schemas.base import BaseSchema
from app.search.client import TypesenseClient
from app.workers.queue import QUEUE_NAMES

router = APIRouter(tags=["health"])


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    timestamp: str
    checks: dict
    queues: dict = {}


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for monitoring.

    Returns 200 if all systems are operational.
    """
    checks = {}
    queues = {}

    # Check database
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {str(e)}"

    # Check Redis
    try:
        r = redis.from_url(settings.redis_url)
        await r.ping()
        await r.aclose()
        checks["redis"] = "healthy"
    except Exception as e:
        checks["redis"] = f"unhealthy: {str(e)}"

    # Check search
    try:
        async with TypesenseClient() as search:
            ok = await search.health()
        checks["search"] = "healthy" if ok else "unhealthy: not ready"
    except Exception as e:
        checks["search"] = f"unhealthy: {str(e)}"

    # Queue backlog, only when workers were wired up at startup
    queue_service = getattr(request.app.state, "queue_service", None)
    if queue_service is not None and queue_service.is_initialized:
        for name in QUEUE_NAMES:
            try:
                queues[name] = await run_in_threadpool(queue_service.get_queue_metrics, name)
            except Exception as e:
                queues[name] = {"queue": name, "error": str(e)}

    # Overall status
    all_healthy = all(v == "healthy" for v in checks.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        checks=checks,
        queues=queues,
    )
