"""
Task handlers for background processing.

ARCHITECTURE RULE: Same as routes - handlers are thin entry points.
They do exactly 3 things:
  1. Create a DB session (since we're outside FastAPI's request cycle)
  2. Call a service method
  3. Return the result

Handlers are registered on their queues by register_workers() during
bootstrap rather than with module-level decorators.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import async_session_maker, engine
from app.core.logging import get_logger
from app.search.client import TypesenseClient
from app.services.alert_processing_service import CADENCE_WINDOWS, AlertProcessingService
from app.services.alert_service import AlertService
from app.services.matching_service import MatchingService
from app.services.notification_service import NotificationService
from app.workers.queue import (
    JOB_ALERT_QUEUE,
    MAINTENANCE_QUEUE,
    QueuedTask,
    QueueService,
    RateLimit,
)

logger = get_logger(__name__)

PROCESS_ALERTS_TASK = "process_job_alerts"
PAUSE_INACTIVE_TASK = "pause_inactive_user_alerts"


@asynccontextmanager
async def task_session() -> AsyncIterator[AsyncSession]:
    """
    Session for one task run.

    Each run gets a fresh event loop, so pooled connections bound to the
    previous loop are disposed when the run ends.
    """
    try:
        async with async_session_maker() as db:
            yield db
    finally:
        await engine.dispose()


def make_alert_processing_handler(queue_service: QueueService):
    """Handler for `process_job_alerts`: payload {"frequency": "daily"|"weekly"|"monthly"}."""
    notification_service = NotificationService(queue_service)

    async def process_job_alerts(task: QueuedTask) -> dict:
        frequency = task.payload.get("frequency")
        if frequency not in CADENCE_WINDOWS:
            raise ValueError(f"Unknown alert frequency: {frequency!r}")

        async with TypesenseClient() as search:
            service = AlertProcessingService(
                MatchingService(search),
                notification_service,
            )
            async with task_session() as db:
                result = await service.process_alerts(db, frequency)

        return result.to_dict()

    return process_job_alerts


def make_inactive_user_pause_handler():
    """Handler for `pause_inactive_user_alerts`."""
    alert_service = AlertService()

    async def pause_inactive_user_alerts(task: QueuedTask) -> dict:
        async with task_session() as db:
            return await alert_service.pause_alerts_for_inactive_users(db)

    return pause_inactive_user_alerts


def register_workers(queue_service: QueueService) -> None:
    """Bind every handler to its queue."""
    queue_service.register_worker(
        JOB_ALERT_QUEUE,
        PROCESS_ALERTS_TASK,
        make_alert_processing_handler(queue_service),
        concurrency=2,
        rate_limit=RateLimit(max=10, window_ms=60_000),
    )
    queue_service.register_worker(
        MAINTENANCE_QUEUE,
        PAUSE_INACTIVE_TASK,
        make_inactive_user_pause_handler(),
        concurrency=1,
        rate_limit=RateLimit(max=1, window_ms=60_000),
    )
    logger.info("workers_registered", tasks=list(queue_service.workers))
