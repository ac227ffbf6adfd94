"""Abstract base class for vision-capable LLM providers.

Defines the contract for the model backend that reads CD photos.  The
field extractor only ever talks to this interface, so the OpenAI SDK (or
any OpenAI-compatible gateway) stays behind one adapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAILLMProvider in src/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used by the CD scan pipeline."""

    @abstractmethod
    async def vision_extract(
        self,
        image_refs: list[str],
        prompt: str,
        max_tokens: int = 1500,
    ) -> str:
        """Send *prompt* together with several images and return the reply text.

        Parameters
        ----------
        image_refs:
            Image URLs or ``data:`` URIs, in the order the caller recorded them.
        prompt:
            Instruction text placed before the images in the same message.
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's raw text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns no content.
        """

    @abstractmethod
    def supports_vision(self) -> bool:
        """Return ``True`` if this provider can process image inputs."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present (no network call)."""
