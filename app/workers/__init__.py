"""
Workers package - queues, task handlers and schedules.

Handlers and schedules are wired up by app.workers.bootstrap; importing
this package does not register anything.
"""
from app.workers.celery_app import celery_app
from app.workers.queue import (
    EMAIL_QUEUE,
    JOB_ALERT_QUEUE,
    MAINTENANCE_QUEUE,
    QueueService,
    RateLimit,
)

__all__ = [
    "celery_app",
    "QueueService",
    "RateLimit",
    "JOB_ALERT_QUEUE",
    "MAINTENANCE_QUEUE",
    "EMAIL_QUEUE",
]
