"""
Typed source records that flow through enrichment and payload assembly.

Each entity declares which field carries its long-form content. The AI
rewrite and its metadata travel on the ``optimized`` / ``enhancement``
side-channel and are never part of the record's own fields.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EnhancementStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class EnhancementMetadata(BaseModel):
    """Outcome of one enrichment attempt for one item."""

    model_config = ConfigDict(frozen=True)

    status: EnhancementStatus
    validated: bool
    length_original: int
    length_optimized: int
    format: str = ""
    focus_on: str = ""
    tokens_used: int = 0
    model: str = ""
    language: str = "en"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    @property
    def accepted(self) -> bool:
        """True when the optimized text may replace the raw field."""
        return self.status == EnhancementStatus.SUCCESS and self.validated


class SourceEntity(BaseModel):
    """Common shape of every content-bearing record."""

    model_config = ConfigDict(extra="allow")

    content_field: ClassVar[str] = "description"
    side_channel: ClassVar[frozenset] = frozenset({"optimized", "enhancement"})

    id: str
    user_id: Optional[str] = None
    optimized: Optional[str] = None
    enhancement: Optional[EnhancementMetadata] = None

    @property
    def content(self) -> str:
        return getattr(self, self.content_field, None) or ""

    def record_fields(self) -> dict:
        """Record fields without the enrichment side-channel."""
        return self.model_dump(exclude=set(self.side_channel))


class Experience(SourceEntity):
    kind: Literal["experience"] = "experience"

    company: str = ""
    position: str = ""
    description: str = ""
    period_start: Optional[Any] = None
    period_end: Optional[Any] = None
    location: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)


class Project(SourceEntity):
    kind: Literal["project"] = "project"

    name: str = ""
    description: str = ""
    status: Optional[str] = None
    slug: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Post(SourceEntity):
    kind: Literal["post"] = "post"
    content_field: ClassVar[str] = "excerpt"

    title: str = ""
    excerpt: str = ""
    url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class TechnicalWriting(SourceEntity):
    kind: Literal["technical_writing"] = "technical_writing"

    title: str = ""
    description: str = ""
    url: Optional[str] = None
    excerpt: Optional[str] = None
    published_at: Optional[datetime] = None
    topics: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    type: Optional[str] = None
    platform: Optional[str] = None


class SystemDesign(SourceEntity):
    kind: Literal["system_design"] = "system_design"

    title: str = ""
    description: str = ""
    components: Optional[Any] = None
    data_flow: Optional[str] = None
    diagram: Optional[str] = None
    created_at: Optional[datetime] = None


Entity = Union[Experience, Project, Post, TechnicalWriting, SystemDesign]


class EnhancementStats(BaseModel):
    sections_enabled: List[str] = Field(default_factory=list)
    total_tokens_used: int = 0
    duration_ms: int = 0


class EnrichedData(BaseModel):
    """Source records for one job, enriched where possible."""

    experiences: List[Experience] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    posts: List[Post] = Field(default_factory=list)
    technical_writings: List[TechnicalWriting] = Field(default_factory=list)
    system_designs: List[SystemDesign] = Field(default_factory=list)
    enhancement_stats: Optional[EnhancementStats] = None
