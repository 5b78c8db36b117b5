"""Read-only usage history records consumed by the behavior extractor."""

from datetime import datetime

from pydantic import BaseModel


class ApplicationRecord(BaseModel):
    """A past job application made through the platform."""
    job_id: str = ""
    created_at: datetime
    job_posted_date: datetime | None = None
    applied_date: datetime | None = None


class SessionRecord(BaseModel):
    login_time: datetime
    logout_time: datetime | None = None
    duration_minutes: float | None = None


class UserProfile(BaseModel):
    referral_count: int = 0
    platform_applications: int = 0
    direct_applications: int = 0
