"""OpenAI content provider implementation."""
from typing import Any, Dict, List

import httpx
from openai import AsyncOpenAI

from resume_worker.services.llm.base import (
    ContentGenerationRequest,
    ContentGenerationResponse,
    ContentProvider,
)

_DEFAULT_INSTRUCTION = (
    "Rewrite the candidate content below so it is tailored to the job description. "
    "Return only the rewritten text."
)


def _to_responses_input(messages: List[Dict[str, str]]) -> List[Dict[str, Any]]:
    formatted: List[Dict[str, Any]] = []
    for message in messages:
        role = message["role"] if message["role"] in {"system", "user", "assistant"} else "user"
        formatted.append(
            {
                "role": role,
                "content": [{"type": "input_text", "text": message["content"]}],
            }
        )
    return formatted


def _extract_output_text(response: Any) -> str:
    if isinstance(response, dict):
        output_text = response.get("output_text")
    else:
        output_text = getattr(response, "output_text", None)
    if isinstance(output_text, str) and output_text.strip():
        return output_text

    chunks: List[str] = []
    output_items = response.get("output", []) if isinstance(response, dict) else getattr(response, "output", [])
    for item in output_items or []:
        if isinstance(item, dict):
            content_parts = item.get("content", []) or []
        else:
            content_parts = getattr(item, "content", []) or []
        for content in content_parts:
            if isinstance(content, dict):
                text = content.get("text")
            else:
                text = getattr(content, "text", None)
            if isinstance(text, str) and text:
                chunks.append(text)
    return "".join(chunks).strip()


def _extract_usage_tokens(response: Any) -> int:
    usage = response.get("usage") if isinstance(response, dict) else getattr(response, "usage", None)
    if usage is None:
        return 0
    total = usage.get("total_tokens") if isinstance(usage, dict) else getattr(usage, "total_tokens", None)
    if isinstance(total, int):
        return total

    if isinstance(usage, dict):
        input_tokens = usage.get("input_tokens", 0) or 0
        output_tokens = usage.get("output_tokens", 0) or 0
    else:
        input_tokens = getattr(usage, "input_tokens", 0) or 0
        output_tokens = getattr(usage, "output_tokens", 0) or 0
    return int(input_tokens) + int(output_tokens)


def _supports_temperature(model: str) -> bool:
    normalized = (model or "").lower()
    # Responses models in the GPT-5 / reasoning families reject `temperature`.
    unsupported_prefixes = ("gpt-5", "o1", "o3", "o4")
    return not normalized.startswith(unsupported_prefixes)


def build_messages(request: ContentGenerationRequest) -> List[Dict[str, str]]:
    """Turn a content request into system + user messages."""
    context = request.userContext
    parts = [f"Job description:\n{request.jobDescription}"]
    if context.skills:
        parts.append(f"Key skills: {', '.join(context.skills)}")
    if context.experience:
        parts.append(f"Candidate content:\n{context.experience}")
    if context.projects:
        parts.append(f"Projects:\n{context.projects}")

    return [
        {"role": "system", "content": request.instruction or _DEFAULT_INSTRUCTION},
        {"role": "user", "content": "\n\n".join(parts)},
    ]


class OpenAIProvider(ContentProvider):
    """Generates content directly through the OpenAI Responses API."""

    def __init__(self, api_key: str, model: str = "gpt-5-mini", temperature: float = 0.4):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model used for every generation
            temperature: Sampling temperature where the model accepts one
        """
        if not api_key or not api_key.strip():
            raise ValueError("OPENAI_API_KEY is not configured")

        self.api_key = api_key
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature

    async def _responses_create(self, request_args: Dict[str, Any]) -> Any:
        """Call the Responses API with SDK support and HTTP fallback.

        Some older OpenAI Python SDK builds expose AsyncOpenAI but not `.responses`.
        """
        responses_api = getattr(self.client, "responses", None)
        if responses_api and hasattr(responses_api, "create"):
            return await responses_api.create(**request_args)

        async with httpx.AsyncClient(timeout=90.0) as http_client:
            response = await http_client.post(
                "https://api.openai.com/v1/responses",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=request_args,
            )

        if response.status_code >= 400:
            try:
                payload = response.json()
                message = payload.get("error", {}).get("message") or response.text
            except ValueError:
                message = response.text
            raise RuntimeError(f"Responses API request failed ({response.status_code}): {message}")

        return response.json()

    async def generate_content(self, request: ContentGenerationRequest) -> ContentGenerationResponse:
        request_args: Dict[str, Any] = {
            "model": self.model,
            "input": _to_responses_input(build_messages(request)),
        }
        if _supports_temperature(self.model):
            request_args["temperature"] = self.temperature

        response = await self._responses_create(request_args)
        return ContentGenerationResponse(
            content=_extract_output_text(response),
            tokens_used=_extract_usage_tokens(response),
            model=self.model,
        )

    async def close(self) -> None:
        await self.client.close()
