"""Pydantic models for resume generation jobs."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Completed and cancelled jobs never transition again."""
        return self in (JobStatus.COMPLETED, JobStatus.CANCELLED)


class Job(BaseModel):
    """Decoded body of one queue delivery."""

    jobId: str
    userId: str
    jobDescription: str = ""
    userName: Optional[str] = None
    userEmail: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("jobDescription", mode="before")
    @classmethod
    def _null_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_metadata(cls, value: Any) -> Any:
        # producers send explicit nulls for optional fields
        return {} if value is None else value


class ResumeJobRecord(BaseModel):
    """Persisted row of the resume_jobs table."""

    id: str
    user_id: str
    job_description: str = ""
    status: JobStatus
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfile(BaseModel):
    """Identity block rendered at the top of the resume."""

    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
