"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When ``openai_base_url`` is configured the client points at that gateway
instead of api.openai.com, so any OpenAI-compatible vision model
(Gemini via a gateway, TogetherAI, ...) can read the CD photos.
"""

from __future__ import annotations

import base64

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


def _detect_media_type(image_bytes: bytes) -> str:
    """Detect the MIME type of an image from its magic bytes.

    PNG starts with 89 50 4E 47, WEBP with RIFF....WEBP, JPEG with FF D8.
    """
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def bytes_to_data_uri(image_bytes: bytes) -> str:
    """Encode raw image bytes as a ``data:`` URI accepted by ``image_url`` parts."""
    b64 = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{_detect_media_type(image_bytes)};base64,{b64}"


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Uses ``gpt-4o`` by default; override with ``OPENAI_VISION_MODEL``.
    All images of a scan go into a single user message after the prompt,
    so the model can correlate the front, back cover and disc hub.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._base_url = settings.openai_base_url
        # Built on first use: AsyncOpenAI refuses to construct without a key.
        self._client: openai.AsyncOpenAI | None = None
        self._vision_model = settings.openai_vision_model or "gpt-4o"
        self._timeout = settings.llm_timeout_seconds
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise LLMError(
                    message="OPENAI_API_KEY is not configured",
                    provider_name=self.get_provider_name(),
                )
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": openai.Timeout(self._timeout, connect=5.0),
            }
            if self._base_url:
                client_kwargs["base_url"] = self._base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)
        return self._client

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def vision_extract(
        self,
        image_refs: list[str],
        prompt: str,
        max_tokens: int = 1500,
    ) -> str:
        """Send the prompt plus every image reference in one chat message."""
        content: list[dict] = [{"type": "text", "text": prompt}]
        content.extend(
            {"type": "image_url", "image_url": {"url": ref}} for ref in image_refs
        )
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self._vision_model,
                messages=[{"role": "user", "content": content}],
                max_tokens=max_tokens,
                temperature=0.0,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out after {self._timeout:.0f}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} vision API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices or response.choices[0].message.content is None:
            raise LLMError(
                message=f"{self._provider_label} vision returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_vision_extract",
            model=self._vision_model,
            provider=self._provider_label,
            images=len(image_refs),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return response.choices[0].message.content

    def supports_vision(self) -> bool:
        return True

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        """Return 'openai' or 'openai-compatible' depending on configuration."""
        return self._provider_label
