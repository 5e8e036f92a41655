"""
Celery application configuration.

This module sets up the Celery app with Redis as broker and backend.
Tasks are not autodiscovered: handlers are registered explicitly through
QueueService.register_worker during bootstrap (see app.workers.bootstrap).
"""
from celery import Celery
from celery.signals import worker_process_init, beat_init

from app.core.config import settings
from app.core.logging import setup_logging


def create_celery_app(name: str = "job_alerts") -> Celery:
    """Build a configured Celery app. Tests create isolated instances."""
    app = Celery(
        name,
        broker=settings.redis_url,
        backend=settings.redis_url,
    )

    app.conf.update(
        # Serialization
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],

        # Timezone
        timezone="UTC",
        enable_utc=True,

        # Task settings
        task_track_started=True,
        task_time_limit=settings.task_time_limit,
        task_soft_time_limit=settings.task_soft_time_limit,

        # Worker settings
        worker_prefetch_multiplier=1,
        task_acks_late=True,  # Ack after completion for at-least-once delivery
        task_reject_on_worker_lost=True,

        # Result settings
        result_expires=3600,

        # Priorities on the Redis transport
        broker_transport_options={"queue_order_strategy": "priority"},

        beat_schedule={},
    )
    return app


celery_app = create_celery_app()


@worker_process_init.connect
def _configure_worker_logging(**kwargs):
    setup_logging()


@beat_init.connect
def _configure_beat_logging(**kwargs):
    setup_logging()
