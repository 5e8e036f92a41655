"""
Notification service - hands job alert digests to the email queue.

Rendering and delivery belong to the email subsystem; this service only
builds the task payload and enqueues it.
"""
from typing import List

from app.core.logging import get_logger
from app.models.job_alert import JobAlert
from app.models.job_alert_match import JobAlertMatch
from app.models.user import User
from app.schemas.notification import (
    JobAlertNotificationPayload,
    NotificationJob,
    NotificationMatch,
)
from app.workers.queue import EMAIL_QUEUE, QueueService, TaskHandle

logger = get_logger(__name__)

NOTIFICATION_TASK = "send_job_alert_notification"
DEFAULT_ALERT_NAME = "Your Job Alert"
UNKNOWN_COMPANY = "Unknown Company"


class NotificationService:
    """Enqueues one notification task per processed alert."""

    def __init__(self, queue_service: QueueService):
        self.queue_service = queue_service

    def build_payload(
        self,
        alert: JobAlert,
        user: User,
        matches: List[JobAlertMatch],
        total_matches: int,
    ) -> JobAlertNotificationPayload:
        """Assemble the email worker's payload from unsent matches."""
        items = []
        for match in matches:
            job = match.job
            company = job.company.name if job and job.company else None
            items.append(
                NotificationMatch(
                    job=NotificationJob(
                        id=str(match.job_id),
                        title=job.title if job else "",
                        company=company or UNKNOWN_COMPANY,
                        location=job.location if job else None,
                        job_type=job.job_type if job else None,
                        experience_level=job.experience if job else None,
                        description=job.description if job else None,
                    ),
                    match_score=match.match_score,
                )
            )

        return JobAlertNotificationPayload(
            user_id=str(user.id),
            email=user.email,
            full_name=user.full_name or "",
            alert_name=alert.name or DEFAULT_ALERT_NAME,
            matches=items,
            total_matches=total_matches,
        )

    def enqueue_alert_notification(
        self,
        alert: JobAlert,
        user: User,
        matches: List[JobAlertMatch],
        total_matches: int,
    ) -> TaskHandle:
        """Build and enqueue the notification. Queue errors propagate."""
        payload = self.build_payload(alert, user, matches, total_matches)
        handle = self.queue_service.enqueue(
            EMAIL_QUEUE,
            NOTIFICATION_TASK,
            payload.to_task_payload(),
        )
        logger.debug(
            "alert_notification_queued",
            alert_id=str(alert.id),
            task_id=handle.id,
            matches=len(matches),
            total_matches=total_matches,
        )
        return handle
