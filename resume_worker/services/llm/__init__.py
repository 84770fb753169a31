"""AI content providers."""

from .base import ContentGenerationRequest, ContentGenerationResponse, ContentProvider, ContentType
from .factory import ContentProviderFactory

__all__ = [
    'ContentGenerationRequest',
    'ContentGenerationResponse',
    'ContentProvider',
    'ContentProviderFactory',
    'ContentType',
]
