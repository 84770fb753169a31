"""Base AI content provider interface."""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ContentType(str, Enum):
    PROFILE = "profile"
    EXPERIENCE = "experience"
    SKILLS = "skills"
    SUMMARY = "summary"


class UserContext(BaseModel):
    experience: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    projects: Optional[str] = None


class ContentGenerationRequest(BaseModel):
    """Request body of the AI service content endpoint."""

    type: ContentType
    jobDescription: str
    userContext: UserContext = Field(default_factory=UserContext)
    instruction: Optional[str] = None


class ContentGenerationResponse(BaseModel):
    """Generated content."""

    content: str
    tokens_used: int = 0
    model: str = ""


class ContentProvider(ABC):
    """Abstract base class for all AI content providers."""

    @abstractmethod
    async def generate_content(self, request: ContentGenerationRequest) -> ContentGenerationResponse:
        """Generate rewritten content for one item.

        Args:
            request: Section type, job description, the raw content and instruction

        Returns:
            ContentGenerationResponse with generated content
        """
        pass

    async def health(self) -> bool:
        """Whether the provider is reachable."""
        return True

    async def close(self) -> None:
        """Release network resources."""
        return None
