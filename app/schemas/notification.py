"""
Notification payload schemas.

These mirror the contract of the email worker that consumes the email
queue. Field aliases are the camelCase keys it expects.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_task_payload(self) -> dict:
        """JSON-ready dict with camelCase keys, optional fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NotificationJob(_Payload):
    id: str
    title: str
    company: str
    location: Optional[str] = None
    job_type: Optional[str] = Field(default=None, alias="jobType")
    experience_level: Optional[str] = Field(default=None, alias="experienceLevel")
    description: Optional[str] = None


class NotificationMatch(_Payload):
    job: NotificationJob
    match_score: float = Field(alias="matchScore")


class JobAlertNotificationPayload(_Payload):
    """Payload of the send_job_alert_notification task."""

    user_id: str = Field(alias="userId")
    email: str
    full_name: str = Field(alias="fullName")
    alert_name: str = Field(alias="alertName")
    matches: List[NotificationMatch]
    total_matches: int = Field(alias="totalMatches")
