"""Render (resume) service client."""
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class RenderResponse(BaseModel):
    """Render service reply. Exactly one of pdfUrl/html is expected on success."""

    model_config = ConfigDict(extra="ignore")

    jobId: Optional[str] = None
    status: Optional[str] = None  # queued, processing, completed, failed
    pdfUrl: Optional[str] = None
    html: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_document(self) -> bool:
        return bool(self.pdfUrl or self.html)

    @property
    def is_pending(self) -> bool:
        return self.status in ("queued", "processing") and not self.has_document and not self.error


class RenderServiceClient:
    """HTTP client for the render service."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"X-API-Key": api_key} if api_key else {}
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout, headers=headers)

    async def render(self, user_id: str, payload: Dict[str, Any]) -> RenderResponse:
        """Submit a resume payload for rendering."""
        logger.info(
            f"Requesting resume generation for user {user_id} "
            f"(job description: {payload.get('jobDescription', '')[:100]!r})"
        )
        try:
            response = await self.client.post(
                "/api/v1/resumes/generate",
                json={"userId": user_id, "payload": payload},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Resume generation request failed for user {user_id}: {e}")
            raise
        return RenderResponse.model_validate(response.json())

    async def get_status(self, render_job_id: str) -> RenderResponse:
        try:
            response = await self.client.get(f"/api/v1/resumes/{render_job_id}/status")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to get resume status for {render_job_id}: {e}")
            raise
        return RenderResponse.model_validate(response.json())

    async def download(self, url: str) -> bytes:
        """Fetch a rendered document; relative URLs resolve against the service."""
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to download resume from {url}: {e}")
            raise
        return response.content

    async def health(self) -> bool:
        try:
            response = await self.client.get("/healthz")
            return response.status_code < 400
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        await self.client.aclose()
