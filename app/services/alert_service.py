"""
Alert service - business logic for job alert management.

Alerts are saved searches. Users create, list, pause and resume them;
the processing worker reads them on their cadence.

Invariant: a user holds at most `max_active_alerts_per_user` alerts that
are active and not paused. The cap is checked before any write.
"""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AlertLimitExceededException,
    AlertNotFoundException,
    ValidationException,
)
from app.core.logging import get_logger
from app.models.job_alert import JobAlert
from app.repositories.alert_repository import AlertRepository
from app.schemas.alert import AlertCreate, AlertResponse
from app.schemas.base import PaginatedResponse

logger = get_logger(__name__)


class AlertService:
    """Handles alert creation, listing, pausing and resuming."""

    def __init__(self, alert_repo: AlertRepository = None):
        self.alert_repo = alert_repo or AlertRepository()

    async def create_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        data: AlertCreate,
    ) -> AlertResponse:
        """
        Create an alert for a user.

        Raises:
            ValidationException: no search criteria given
            AlertLimitExceededException: user is at the active alert cap
        """
        if not data.has_criteria():
            raise ValidationException(
                "At least one of search query, location, skills, "
                "experience level or employment types must be provided."
            )

        await self._ensure_capacity(db, user_id)

        alert = await self.alert_repo.create(
            db,
            user_id=user_id,
            name=data.name,
            description=data.description,
            search_query=data.search_query.strip() if data.search_query else None,
            city=data.city.strip() if data.city else None,
            state=data.state.strip() if data.state else None,
            job_type=list(data.job_type) if data.job_type else None,
            skills=data.skills or None,
            experience_level=data.experience_level or None,
            include_remote=data.include_remote,
            frequency=data.frequency,
            is_active=True,
            is_paused=False,
        )
        await db.commit()

        logger.info("alert_created", alert_id=str(alert.id), user_id=str(user_id))
        return AlertResponse.model_validate(alert)

    async def list_alerts(
        self,
        db: AsyncSession,
        user_id: UUID,
        *,
        page: int = 1,
        limit: int = 10,
    ) -> PaginatedResponse[AlertResponse]:
        """Get paginated alerts for a user."""
        alerts, total = await self.alert_repo.find_for_user(
            db, user_id, page=page, limit=limit
        )
        return PaginatedResponse[AlertResponse].build(
            [AlertResponse.model_validate(a) for a in alerts], total, page, limit
        )

    async def pause_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        alert_id: UUID,
    ) -> AlertResponse:
        """Stop processing an alert without deleting it."""
        alert = await self._get_user_alert(db, user_id, alert_id)
        alert = await self.alert_repo.update(db, alert, is_paused=True)
        await db.commit()
        return AlertResponse.model_validate(alert)

    async def resume_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        alert_id: UUID,
    ) -> AlertResponse:
        """Resume a paused alert. Counts against the active cap again."""
        alert = await self._get_user_alert(db, user_id, alert_id)
        if alert.is_paused or not alert.is_active:
            await self._ensure_capacity(db, user_id)
            alert = await self.alert_repo.update(db, alert, is_paused=False, is_active=True)
            await db.commit()
        return AlertResponse.model_validate(alert)

    async def pause_alerts_for_inactive_users(self, db: AsyncSession) -> dict:
        """Pause every active alert owned by a deactivated user."""
        result = await self.alert_repo.pause_alerts_for_inactive_users(db)
        await db.commit()
        logger.info("inactive_user_alerts_paused", **result)
        return result

    async def _ensure_capacity(self, db: AsyncSession, user_id: UUID) -> None:
        current = await self.alert_repo.count_active_for_user(db, user_id)
        maximum = settings.max_active_alerts_per_user
        if current >= maximum:
            logger.info("alert_limit_reached", user_id=str(user_id), current=current)
            raise AlertLimitExceededException(current, maximum)

    async def _get_user_alert(
        self,
        db: AsyncSession,
        user_id: UUID,
        alert_id: UUID,
    ) -> JobAlert:
        """Fetch an alert; another user's alert is reported as not found."""
        alert = await self.alert_repo.get_by_id(db, alert_id)

        if not alert or alert.user_id != user_id:
            raise AlertNotFoundException()

        return alert
