"""
Payload assembler.
Builds the render service request from the job, enriched records and profile.
"""
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from resume_worker.models.entities import EnrichedData, SourceEntity
from resume_worker.models.jobs import Job, UserProfile

JOB_DESCRIPTION_MAX = 2000
LONG_FIELD_MAX = 800
SHORT_FIELD_MAX = 500
METADATA_VALUE_MAX = 1000
NAME_MAX = 200
EMAIL_MAX = 200
PHONE_MAX = 50
LOCATION_MAX = 100

LONG_FORM_FIELDS = frozenset({"description", "content", "summary", "data_flow"})

PLACEHOLDER_EMAIL = "no-reply@example.com"
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def truncate(value: Any, max_length: int) -> str:
    """Hard left-anchored cut; None becomes an empty string."""
    if value is None:
        return ""
    text = str(value)
    return text if len(text) <= max_length else text[:max_length]


def field_cap(field: str) -> int:
    return LONG_FIELD_MAX if field in LONG_FORM_FIELDS else SHORT_FIELD_MAX


def select_optimal_content(item: SourceEntity, field: str) -> str:
    """Prefer the AI rewrite only when it succeeded and passed validation."""
    cap = field_cap(field)
    if (
        field == item.content_field
        and item.enhancement is not None
        and item.enhancement.accepted
        and item.optimized
    ):
        return truncate(item.optimized, cap)
    return truncate(getattr(item, field, None) or "", cap)


def sanitize_email(value: Optional[str]) -> str:
    email = truncate(value, EMAIL_MAX)
    return email if _EMAIL_RE.match(email) else PLACEHOLDER_EMAIL


def _bounded(value: Any, cap: int) -> Any:
    if isinstance(value, str):
        return truncate(value, cap)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, list):
        return [_bounded(element, cap) for element in value]
    return value


def _entry(item: SourceEntity) -> Dict[str, Any]:
    entry = {key: _bounded(value, field_cap(key)) for key, value in item.record_fields().items()}
    entry[item.content_field] = select_optimal_content(item, item.content_field)
    entry["_aiEnhanced"] = bool(item.enhancement is not None and item.enhancement.accepted)
    return entry


def _entries(items: Sequence[SourceEntity]) -> List[Dict[str, Any]]:
    return [_entry(item) for item in items]


def assemble_payload(
    job: Job,
    enriched: Optional[EnrichedData] = None,
    user_profile: Optional[UserProfile] = None,
) -> Dict[str, Any]:
    """
    Compose the render request.

    Args:
        job: The job being processed
        enriched: Source records (enriched or raw)
        user_profile: Identity resolved from the auth database, if any

    Returns:
        JSON-serializable payload; enhancement metadata never appears in it
    """
    enriched = enriched or EnrichedData()
    profile = user_profile or UserProfile()

    payload: Dict[str, Any] = {
        "profile": {
            "name": truncate(profile.name or job.userName, NAME_MAX),
            "email": sanitize_email(profile.email or job.userEmail),
            "phone": truncate(profile.phone, PHONE_MAX),
            "location": truncate(profile.location, LOCATION_MAX),
        },
        "jobDescription": truncate(job.jobDescription, JOB_DESCRIPTION_MAX),
        "experiences": _entries(enriched.experiences),
        "projects": _entries(enriched.projects),
        "posts": _entries(enriched.posts),
        "technicalWritings": _entries(enriched.technical_writings),
        "systemDesigns": _entries(enriched.system_designs),
    }

    meta: Dict[str, Any] = {
        key: truncate(value, METADATA_VALUE_MAX) if isinstance(value, str) else value
        for key, value in (job.metadata or {}).items()
    }

    stats = enriched.enhancement_stats
    if stats is not None:
        meta["ai_enriched_sections"] = list(stats.sections_enabled)
        meta["ai_tokens_used"] = stats.total_tokens_used
        meta["ai_enhancement_duration_ms"] = stats.duration_ms

    payload["metadata"] = meta
    return payload
