"""
Job model - a job posting.

Postings are written by the job CRUD layer and mirrored into the search
index by a separate indexing pipeline. The alert pipeline only reads them.
"""
import uuid
from typing import TYPE_CHECKING, Optional, List
from sqlalchemy import String, Boolean, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.company import Company
    from app.models.job_alert_match import JobAlertMatch


class Job(BaseModel):
    """Job posting entity."""

    __tablename__ = "jobs"

    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id"),
        nullable=True,
        index=True,
    )

    # Core fields
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_remote: Mapped[bool] = mapped_column(Boolean, default=False)
    job_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )  # 'full-time', 'part-time', 'contract', 'temporary', 'intern'
    experience: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )  # 'entry', 'mid', 'senior', 'lead', 'executive'

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Relationships
    company: Mapped[Optional["Company"]] = relationship("Company", back_populates="jobs")
    alert_matches: Mapped[List["JobAlertMatch"]] = relationship(
        "JobAlertMatch",
        back_populates="job",
        cascade="all, delete-orphan",
    )

    @property
    def location(self) -> Optional[str]:
        """'City, State' from whichever parts are present."""
        parts = [part for part in (self.city, self.state) if part]
        return ", ".join(parts) if parts else None

    def __repr__(self) -> str:
        return f"<Job {self.title}>"
