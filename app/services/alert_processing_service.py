"""
Alert processing service - the per-cadence batch run.

One run handles every due alert of a cadence (daily, weekly, monthly):
match it, record new matches, queue a notification for unsent matches and
advance the alert's last_sent_at watermark.

Failure isolation: each alert runs inside its own savepoint. A search
failure or write error skips that alert and the batch moves on; only a
failure to load the batch itself propagates.
"""
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import get_logger
from app.models.job_alert import JobAlert
from app.models.job_alert_match import JobAlertMatch
from app.repositories.alert_repository import AlertRepository
from app.repositories.match_repository import MatchRepository
from app.services.matching_service import MatchingService
from app.services.notification_service import NotificationService

logger = get_logger(__name__)

CADENCE_WINDOWS = {
    "daily": timedelta(hours=24),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
}

STATUS_PROCESSED = "processed"
STATUS_SKIPPED = "skipped"


@dataclass
class AlertOutcome:
    """What happened to one alert in a run."""

    alert_id: UUID
    status: str
    matches_found: int = 0
    new_matches: int = 0
    notification_queued: bool = False
    error: Optional[str] = None

    @property
    def processed(self) -> bool:
        return self.status == STATUS_PROCESSED


@dataclass
class AlertBatchResult:
    """Aggregate counts for one cadence run."""

    frequency: str
    total_alerts: int = 0
    processed: int = 0
    skipped: int = 0
    matches_found: int = 0
    notifications_queued: int = 0

    def record(self, outcome: AlertOutcome) -> None:
        if outcome.processed:
            self.processed += 1
        else:
            self.skipped += 1
        self.matches_found += outcome.matches_found
        if outcome.notification_queued:
            self.notifications_queued += 1

    def to_dict(self) -> dict:
        return asdict(self)


class AlertProcessingService:
    """Runs the matching pipeline for all due alerts of a cadence."""

    def __init__(
        self,
        matching_service: MatchingService,
        notification_service: NotificationService,
        alert_repo: Optional[AlertRepository] = None,
        match_repo: Optional[MatchRepository] = None,
    ):
        self.matching_service = matching_service
        self.notification_service = notification_service
        self.alert_repo = alert_repo or AlertRepository()
        self.match_repo = match_repo or MatchRepository()

    async def process_alerts(
        self,
        db: AsyncSession,
        frequency: str,
        *,
        now: Optional[datetime] = None,
    ) -> AlertBatchResult:
        """
        Process all alerts of a cadence that are due.

        An alert is due when it is active, not paused, and its last_sent_at
        is unset or older than the cadence window. Running twice in a row
        is a no-op the second time because nothing is due anymore.
        """
        if frequency not in CADENCE_WINDOWS:
            raise ValueError(f"Unknown alert frequency: {frequency!r}")

        now = now or datetime.now(timezone.utc)
        cutoff = now - CADENCE_WINDOWS[frequency]

        logger.info("alert_processing_started", frequency=frequency, cutoff=cutoff.isoformat())

        alerts = await self.alert_repo.find_alerts_due(db, frequency, cutoff)
        result = AlertBatchResult(frequency=frequency, total_alerts=len(alerts))

        for alert in alerts:
            outcome = await self.process_alert(db, alert, now)
            result.record(outcome)

        logger.info("alert_processing_completed", **result.to_dict())
        return result

    async def process_alert(
        self,
        db: AsyncSession,
        alert: JobAlert,
        now: datetime,
    ) -> AlertOutcome:
        """
        Process one alert. Never raises; failures become skipped outcomes.

        Matches are marked sent and the watermark advanced in the same
        commit; the notification is only queued once that commit succeeds.
        """
        alert_id = alert.id

        try:
            async with db.begin_nested():
                outcome, digest = await self._match_and_record(db, alert, now)
            await db.commit()
        except Exception as exc:
            await db.rollback()
            logger.error(
                "alert_processing_failed",
                alert_id=str(alert_id),
                error=str(exc),
                exc_info=True,
            )
            return AlertOutcome(alert_id=alert_id, status=STATUS_SKIPPED, error=str(exc))

        if digest is not None:
            outcome.notification_queued = self._enqueue_digest(alert, *digest)
        return outcome

    async def _match_and_record(
        self,
        db: AsyncSession,
        alert: JobAlert,
        now: datetime,
    ) -> Tuple[AlertOutcome, Optional[Tuple[List[JobAlertMatch], int]]]:
        alert_id = alert.id
        logger.debug("alert_processing", alert_id=str(alert_id), user_id=str(alert.user_id))

        match_result = await self.matching_service.find_matches_for_alert(
            alert, settings.alert_match_limit, now=now
        )
        if not match_result.success:
            logger.error(
                "alert_matching_failed",
                alert_id=str(alert_id),
                error=str(match_result.error),
            )
            outcome = AlertOutcome(
                alert_id=alert_id,
                status=STATUS_SKIPPED,
                error=str(match_result.error),
            )
            return outcome, None

        matches = match_result.matches
        if not matches:
            logger.debug("alert_no_matches", alert_id=str(alert_id))
            await self.alert_repo.update_last_sent_at(db, alert_id, now)
            return AlertOutcome(alert_id=alert_id, status=STATUS_PROCESSED), None

        new_matches = await self.match_repo.insert_matches(
            db, alert_id, [(m.job_id, m.match_score) for m in matches]
        )
        logger.info(
            "alert_matches_found",
            alert_id=str(alert_id),
            matches=len(matches),
            new_matches=new_matches,
        )

        unsent = await self.match_repo.find_unsent_matches(
            db, alert_id, settings.alert_email_match_limit
        )
        total_unsent = await self.match_repo.count_unsent_matches(db, alert_id)

        digest = None
        if unsent and alert.user is not None:
            await self.match_repo.mark_matches_sent(db, [m.id for m in unsent])
            digest = (unsent, total_unsent)
        elif unsent:
            logger.warning("alert_owner_missing", alert_id=str(alert_id), user_id=str(alert.user_id))

        await self.alert_repo.update_last_sent_at(db, alert_id, now)

        outcome = AlertOutcome(
            alert_id=alert_id,
            status=STATUS_PROCESSED,
            matches_found=len(matches),
            new_matches=new_matches,
        )
        return outcome, digest

    def _enqueue_digest(
        self,
        alert: JobAlert,
        unsent: List[JobAlertMatch],
        total_unsent: int,
    ) -> bool:
        try:
            self.notification_service.enqueue_alert_notification(
                alert, alert.user, unsent, total_unsent
            )
        except Exception as exc:
            # Matches stay marked sent: a missed email, never a duplicate.
            logger.error(
                "alert_notification_enqueue_failed",
                alert_id=str(alert.id),
                error=str(exc),
            )
            return False
        return True
