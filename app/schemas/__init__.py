"""
Pydantic schemas for request/response validation and task payloads.
"""
from app.schemas.base import (
    BaseSchema,
    TimestampSchema,
    IDSchema,
    PaginatedResponse,
)
from app.schemas.alert import AlertCriteria, AlertCreate, AlertResponse
from app.schemas.notification import (
    NotificationJob,
    NotificationMatch,
    JobAlertNotificationPayload,
)

__all__ = [
    "BaseSchema",
    "TimestampSchema",
    "IDSchema",
    "PaginatedResponse",
    "AlertCriteria",
    "AlertCreate",
    "AlertResponse",
    "NotificationJob",
    "NotificationMatch",
    "JobAlertNotificationPayload",
]
