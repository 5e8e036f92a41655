"""
Alert repository - data access for JobAlert entity.
"""
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.job_alert import JobAlert
from app.models.user import User
from app.repositories.base import BaseRepository


class AlertRepository(BaseRepository[JobAlert]):
    def __init__(self):
        super().__init__(JobAlert)

    async def find_for_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        *,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[List[JobAlert], int]:
        """Get a user's alerts, newest first."""
        query = select(JobAlert).where(JobAlert.user_id == user_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        query = query.order_by(JobAlert.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def count_active_for_user(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """Count alerts that are active and not paused."""
        return await self._count(
            db,
            JobAlert.user_id == user_id,
            JobAlert.is_active == True,
            JobAlert.is_paused == False,
        )

    async def find_alerts_due(
        self,
        db: AsyncSession,
        frequency: str,
        cutoff: datetime,
    ) -> List[JobAlert]:
        """
        Alerts of a cadence whose watermark is unset or older than cutoff.

        The owning user is eager-loaded so the notification step never
        triggers a lazy load outside the session's greenlet.
        """
        result = await db.execute(
            select(JobAlert)
            .options(selectinload(JobAlert.user))
            .where(
                JobAlert.frequency == frequency,
                JobAlert.is_active == True,
                JobAlert.is_paused == False,
                or_(
                    JobAlert.last_sent_at.is_(None),
                    JobAlert.last_sent_at < cutoff,
                ),
            )
            .order_by(JobAlert.created_at)
        )
        return list(result.scalars().all())

    async def update_last_sent_at(
        self,
        db: AsyncSession,
        alert_id: UUID,
        timestamp: datetime,
    ) -> None:
        """Advance the processing watermark."""
        await self._update_where(
            db, [JobAlert.id == alert_id], {"last_sent_at": timestamp}
        )

    async def pause_alerts_for_inactive_users(
        self,
        db: AsyncSession,
    ) -> dict:
        """Pause active alerts owned by deactivated users."""
        inactive_users = select(User.id).where(User.is_active == False)

        result = await self._update_where(
            db,
            [
                JobAlert.user_id.in_(inactive_users),
                JobAlert.is_active == True,
                JobAlert.is_paused == False,
            ],
            {"is_paused": True},
            JobAlert.user_id,
        )
        paused_owner_ids = list(result.scalars().all())

        return {
            "alerts_paused": len(paused_owner_ids),
            "users_affected": len(set(paused_owner_ids)),
        }
