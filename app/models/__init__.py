"""
Database models for the job alert pipeline.

All models use UUID primary keys and include created_at/updated_at timestamps.
"""
from app.models.base import BaseModel, TimestampMixin, UUIDMixin
from app.models.company import Company
from app.models.job import Job
from app.models.user import User
from app.models.job_alert import JobAlert, FREQUENCIES
from app.models.job_alert_match import JobAlertMatch

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    "Company",
    "Job",
    "User",
    "JobAlert",
    "FREQUENCIES",
    "JobAlertMatch",
]
