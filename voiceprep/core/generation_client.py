"""
Generation endpoint client for VoicePrep

Sends a single prompt to a single model over an OpenAI-style chat
completions endpoint and returns the text of the first choice.
Retry and fallback across models live in ModelCaller, not here.
"""

import logging
from typing import Any, Protocol

import httpx

from voiceprep.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class GenerationBackend(Protocol):
    """Anything that can turn (model_id, prompt) into raw text."""

    async def generate(self, model_id: str, prompt: str) -> str:
        ...


class GenerationClient:
    """
    HTTP client for the text-generation service.

    Endpoint path per model comes from ``llm_endpoint_template``,
    e.g. ``/serving-endpoints/{model}/invocations``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client from settings."""
        self.settings = settings or get_settings()
        self.base_url = self.settings.llm_base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {self.settings.llm_api_key}",
            "Content-Type": "application/json",
        }

        # HTTP client for API calls
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.settings.llm_timeout_seconds,
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def _extract_content(self, result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        content = result.get("choices", [{}])[0].get("message", {}).get("content", "")

        # Handle case where content is a list (multi-part response)
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content)

    async def generate(self, model_id: str, prompt: str) -> str:
        """
        Call one model once.

        Args:
            model_id: Candidate model identifier
            prompt: The prompt to send

        Returns:
            Model response text

        Raises:
            httpx.HTTPError: On transport errors and non-2xx responses
            ValueError: If the response body is not usable
        """
        payload: dict[str, Any] = {
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": self.settings.llm_max_tokens,
            "temperature": self.settings.llm_temperature,
        }

        response = await self.client.post(
            self.settings.llm_endpoint_template.format(model=model_id),
            json=payload,
        )
        response.raise_for_status()

        result = response.json()
        if not isinstance(result, dict):
            raise ValueError(f"Unexpected response body from {model_id}")

        return self._extract_content(result)
