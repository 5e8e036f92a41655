"""
JobAlert model - a user's saved, recurring job search.
"""
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional, List
from sqlalchemy import String, Boolean, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.job_alert_match import JobAlertMatch


FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"
FREQUENCIES = (FREQUENCY_DAILY, FREQUENCY_WEEKLY, FREQUENCY_MONTHLY)


class JobAlert(BaseModel):
    """
    Job alert entity.

    Criteria (query, location, job types, skills, experience levels) are
    translated into a search filter by the matching service. last_sent_at is
    the processing watermark: the alert is due again once it falls behind the
    cadence window.
    """

    __tablename__ = "job_alerts"

    __table_args__ = (
        Index("ix_job_alerts_user_active", "user_id", "is_active"),
        Index("ix_job_alerts_due", "frequency", "is_active", "is_paused", "last_sent_at"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Criteria
    search_query: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    job_type: Mapped[Optional[List[str]]] = mapped_column(JSONB, nullable=True)
    skills: Mapped[Optional[List[str]]] = mapped_column(JSONB, nullable=True)
    experience_level: Mapped[Optional[List[str]]] = mapped_column(JSONB, nullable=True)
    include_remote: Mapped[bool] = mapped_column(Boolean, default=True)

    # Scheduling
    frequency: Mapped[str] = mapped_column(String(20), default=FREQUENCY_WEEKLY)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False)
    last_sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="job_alerts")
    matches: Mapped[List["JobAlertMatch"]] = relationship(
        "JobAlertMatch",
        back_populates="job_alert",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<JobAlert {self.name} user_id={self.user_id}>"
