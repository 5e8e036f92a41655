"""
Recurring schedules fired by Celery Beat.

- Daily alerts at 08:00 UTC
- Weekly alerts at 08:00 UTC on Mondays
- Monthly alerts at 08:00 UTC on the 1st
- Pause alerts of deactivated users at 02:00 UTC on Sundays

Each entry is keyed by a stable idempotency key, so re-registering on
every boot replaces the entry instead of duplicating it.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from app.core.logging import get_logger
from app.workers.queue import JOB_ALERT_QUEUE, MAINTENANCE_QUEUE, QueueService
from app.workers.tasks import PAUSE_INACTIVE_TASK, PROCESS_ALERTS_TASK

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScheduledTask:
    key: str
    queue: str
    task_name: str
    pattern: str
    payload: Dict[str, Any] = field(default_factory=dict)


SCHEDULES: List[ScheduledTask] = [
    ScheduledTask(
        key="daily-job-alert-processing",
        queue=JOB_ALERT_QUEUE,
        task_name=PROCESS_ALERTS_TASK,
        pattern="0 8 * * *",
        payload={"frequency": "daily"},
    ),
    ScheduledTask(
        key="weekly-job-alert-processing",
        queue=JOB_ALERT_QUEUE,
        task_name=PROCESS_ALERTS_TASK,
        pattern="0 8 * * 1",
        payload={"frequency": "weekly"},
    ),
    ScheduledTask(
        key="monthly-job-alert-processing",
        queue=JOB_ALERT_QUEUE,
        task_name=PROCESS_ALERTS_TASK,
        pattern="0 8 1 * *",
        payload={"frequency": "monthly"},
    ),
    ScheduledTask(
        key="pause-inactive-user-alerts",
        queue=MAINTENANCE_QUEUE,
        task_name=PAUSE_INACTIVE_TASK,
        pattern="0 2 * * 0",
    ),
]


def register_schedules(queue_service: QueueService) -> Dict[str, bool]:
    """
    Register every recurring schedule.

    A failing entry is logged and skipped; the others are still registered.
    Returns {key: registered} for each entry.
    """
    registered: Dict[str, bool] = {}

    for entry in SCHEDULES:
        try:
            queue_service.schedule(
                entry.queue,
                entry.task_name,
                entry.payload,
                pattern=entry.pattern,
                idempotency_key=entry.key,
            )
            registered[entry.key] = True
        except Exception as exc:
            logger.error("schedule_registration_failed", key=entry.key, error=str(exc))
            registered[entry.key] = False

    logger.info(
        "schedules_registered",
        registered=sum(registered.values()),
        total=len(SCHEDULES),
    )
    return registered
