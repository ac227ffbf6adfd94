"""LLM provider implementations.

Only the OpenAI-compatible adapter is shipped: pointing
``OPENAI_BASE_URL`` at a gateway covers every other vision model the
scanner has been run against.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider, bytes_to_data_uri

__all__ = ["OpenAILLMProvider", "bytes_to_data_uri"]
