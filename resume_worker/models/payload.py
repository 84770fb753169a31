"""Structural schema of the request sent to the render service."""
import logging
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from resume_worker.exceptions import PayloadValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class PayloadProfile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="", max_length=200)
    email: str = Field(max_length=200, pattern=EMAIL_PATTERN)
    phone: str = Field(default="", max_length=50)
    location: str = Field(default="", max_length=100)


class PayloadEntry(BaseModel):
    """One experience/project/post/... entry. Unknown record fields pass through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    kind: str
    ai_enhanced: bool = Field(default=False, alias="_aiEnhanced")


class DescribedEntry(PayloadEntry):
    description: str = Field(default="", max_length=800)


class ExcerptEntry(PayloadEntry):
    excerpt: str = Field(default="", max_length=500)


class ResumePayload(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    profile: PayloadProfile
    jobDescription: str = Field(default="", max_length=2000)
    experiences: List[DescribedEntry] = Field(default_factory=list)
    projects: List[DescribedEntry] = Field(default_factory=list)
    posts: List[ExcerptEntry] = Field(default_factory=list)
    technicalWritings: List[DescribedEntry] = Field(default_factory=list)
    systemDesigns: List[DescribedEntry] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


def validate_payload(payload: Dict[str, Any]) -> ResumePayload:
    """Validate an assembled payload against the render service schema.

    Args:
        payload: Output of ``assemble_payload``

    Returns:
        Parsed ResumePayload

    Raises:
        PayloadValidationError: If the payload violates the schema
    """
    try:
        return ResumePayload.model_validate(payload)
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        logger.error(f"Payload validation failed: {errors}")
        raise PayloadValidationError(errors) from exc
