"""AI content service (HTTP) provider implementation."""
import logging
from typing import Dict

import httpx

from resume_worker.services.llm.base import (
    ContentGenerationRequest,
    ContentGenerationResponse,
    ContentProvider,
)

logger = logging.getLogger(__name__)


class AIServiceProvider(ContentProvider):
    """Generates content through the AI content microservice."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 60.0,
        endpoint: str = "/api/v1/content/generate",
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize AI service provider.

        Args:
            base_url: AI service base URL
            api_key: Optional key sent as X-API-Key
            timeout: Per-request timeout in seconds
            endpoint: Content generation path
            client: Preconfigured HTTP client (tests)
        """
        headers: Dict[str, str] = {"X-API-Key": api_key} if api_key else {}
        self.endpoint = endpoint
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout, headers=headers)

    async def generate_content(self, request: ContentGenerationRequest) -> ContentGenerationResponse:
        logger.info(
            f"Requesting {request.type.value} content from AI service "
            f"(job description: {len(request.jobDescription)} chars)"
        )
        try:
            response = await self.client.post(self.endpoint, json=request.model_dump(mode="json"))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Content generation failed for {request.type.value}: {e}")
            raise

        result = ContentGenerationResponse.model_validate(response.json())
        logger.info(f"Content generation successful: {result.tokens_used} tokens")
        return result

    async def health(self) -> bool:
        try:
            response = await self.client.get("/healthz")
            return response.status_code < 400
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        await self.client.aclose()
