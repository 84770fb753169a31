"""Factory for creating AI content providers."""
from resume_worker.config import Settings, settings as default_settings
from resume_worker.services.llm.base import ContentProvider
from resume_worker.services.llm.service_provider import AIServiceProvider


class ContentProviderFactory:
    """Builds the configured content provider."""

    @classmethod
    def create(cls, settings: Settings = default_settings) -> ContentProvider:
        """Create a content provider based on settings.

        Returns:
            ContentProvider instance

        Raises:
            ValueError: If provider type is unknown
        """
        provider_name = settings.LLM_PROVIDER.lower()

        if provider_name == "service":
            return AIServiceProvider(
                base_url=settings.AI_SERVICE_URL,
                api_key=settings.AI_SERVICE_API_KEY,
                timeout=settings.AI_SERVICE_TIMEOUT,
                endpoint=settings.AI_SERVICE_CONTENT_ENDPOINT,
            )
        elif provider_name == "openai":
            # Import here to avoid constructing the SDK client when unused
            from resume_worker.services.llm.openai_provider import OpenAIProvider

            return OpenAIProvider(api_key=settings.OPENAI_API_KEY, model=settings.OPENAI_MODEL)
        else:
            raise ValueError(f"Unknown LLM provider: {provider_name}")
