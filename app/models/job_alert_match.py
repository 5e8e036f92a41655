"""
JobAlertMatch model - a posting recorded against an alert.
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, utc_now

if TYPE_CHECKING:
    from app.models.job_alert import JobAlert
    from app.models.job import Job


class JobAlertMatch(BaseModel):
    """
    Job alert match entity.

    Used for:
    - Preventing the same posting being recorded twice for an alert
    - Tracking which matches were already included in a notification
    """

    __tablename__ = "job_alert_matches"

    # Unique constraint: one match per alert per job
    __table_args__ = (
        UniqueConstraint("job_alert_id", "job_id", name="uq_job_alert_match"),
        Index("ix_job_alert_matches_alert_sent", "job_alert_id", "was_sent"),
    )

    job_alert_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_alerts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    match_score: Mapped[float] = mapped_column(Float, nullable=False)
    was_sent: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    matched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    # Relationships
    job_alert: Mapped["JobAlert"] = relationship("JobAlert", back_populates="matches")
    job: Mapped["Job"] = relationship("Job", back_populates="alert_matches")

    def __repr__(self) -> str:
        return f"<JobAlertMatch job_alert_id={self.job_alert_id} job_id={self.job_id}>"
