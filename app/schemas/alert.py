"""
Job alert schemas.
"""
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema

Frequency = Literal["daily", "weekly", "monthly"]
JobType = Literal["full_time", "part_time", "contract", "temporary", "intern"]


class AlertCriteria(BaseSchema):
    """Search criteria shared by create and response schemas."""

    search_query: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    job_type: Optional[List[JobType]] = None
    skills: Optional[List[str]] = None
    experience_level: Optional[List[str]] = None
    include_remote: bool = True

    def has_criteria(self) -> bool:
        """At least one of query, location, skills, job types or levels is set."""
        return bool(
            (self.search_query and self.search_query.strip())
            or (self.city and self.city.strip())
            or (self.state and self.state.strip())
            or self.skills
            or self.job_type
            or self.experience_level
        )


class AlertCreate(AlertCriteria):
    """Create job alert request."""

    name: str = Field(min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9\s\-]+$")
    description: Optional[str] = None
    frequency: Frequency = "weekly"

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()


class AlertResponse(AlertCriteria, IDSchema, TimestampSchema):
    """Job alert response schema."""

    user_id: UUID
    name: str
    description: Optional[str] = None
    frequency: Frequency
    is_active: bool
    is_paused: bool
    last_sent_at: Optional[datetime] = None
