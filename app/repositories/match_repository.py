"""
Match repository - data access for JobAlertMatch entity.
"""
import uuid
from datetime import datetime, timezone
from typing import Iterable, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.job import Job
from app.models.job_alert_match import JobAlertMatch
from app.repositories.base import BaseRepository


class MatchRepository(BaseRepository[JobAlertMatch]):
    def __init__(self):
        super().__init__(JobAlertMatch)

    async def insert_matches(
        self,
        db: AsyncSession,
        alert_id: UUID,
        scored: Iterable[tuple[UUID, float]],
    ) -> int:
        """
        Insert (job_id, score) pairs for an alert, skipping existing pairs.

        Returns the number of rows actually inserted.
        """
        now = datetime.now(timezone.utc)
        rows = [
            {
                "id": uuid.uuid4(),
                "job_alert_id": alert_id,
                "job_id": job_id,
                "match_score": score,
                "was_sent": False,
                "matched_at": now,
            }
            for job_id, score in scored
        ]
        if not rows:
            return 0

        stmt = (
            pg_insert(JobAlertMatch)
            .values(rows)
            .on_conflict_do_nothing(constraint="uq_job_alert_match")
            .returning(JobAlertMatch.id)
        )
        result = await db.execute(stmt)
        inserted = len(result.scalars().all())
        await db.flush()
        return inserted

    async def find_unsent_matches(
        self,
        db: AsyncSession,
        alert_id: UUID,
        limit: int = 10,
    ) -> List[JobAlertMatch]:
        """Best unsent matches for an alert, with job and employer loaded."""
        result = await db.execute(
            select(JobAlertMatch)
            .options(selectinload(JobAlertMatch.job).selectinload(Job.company))
            .where(
                JobAlertMatch.job_alert_id == alert_id,
                JobAlertMatch.was_sent == False,
            )
            .order_by(JobAlertMatch.match_score.desc(), JobAlertMatch.matched_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_unsent_matches(
        self,
        db: AsyncSession,
        alert_id: UUID,
    ) -> int:
        """Count matches for an alert not yet included in a notification."""
        return await self._count(
            db,
            JobAlertMatch.job_alert_id == alert_id,
            JobAlertMatch.was_sent == False,
        )

    async def mark_matches_sent(
        self,
        db: AsyncSession,
        match_ids: List[UUID],
    ) -> int:
        """Flag matches as delivered. Returns count updated."""
        if not match_ids:
            return 0
        result = await self._update_where(
            db, [JobAlertMatch.id.in_(match_ids)], {"was_sent": True}
        )
        return result.rowcount
