"""
User model - the owner of job alerts.

Only the columns the alert pipeline reads are mapped here; profile and
authentication data live with the account subsystem.
"""
from typing import TYPE_CHECKING, Optional, List
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.job_alert import JobAlert


class User(BaseModel):
    """
    User entity.

    A deactivated user (is_active = False) keeps their alerts, but the weekly
    maintenance task pauses them.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Relationships
    job_alerts: Mapped[List["JobAlert"]] = relationship(
        "JobAlert",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
