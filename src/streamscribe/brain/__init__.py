"""
brain/__init__.py — StreamScribe Model Layer
"""

from __future__ import annotations

from typing import Optional

from streamscribe.brain.llm_client import (
    BaseChatModel,
    ChatSession,
    LLMAuthError,
    LLMError,
    LLMRateLimitError,
    LLMServiceUnavailableError,
    ModelClientFactory,
)
from streamscribe.brain.types import GenerationConfig, Role, SeedTurn

__all__ = [
    "ChatModelFactory",
    "BaseChatModel",
    "ChatSession",
    "ModelClientFactory",
    "LLMError",
    "LLMAuthError",
    "LLMRateLimitError",
    "LLMServiceUnavailableError",
    "GenerationConfig",
    "SeedTurn",
    "Role",
]


class ChatModelFactory:

    @staticmethod
    def create(provider: str, api_key: Optional[str] = None) -> BaseChatModel:

        provider = provider.lower().strip()

        if provider == "gemini":
            if not api_key:
                raise LLMAuthError("GEMINI_API_KEY is required", provider="gemini")
            from streamscribe.brain.gemini_client import GeminiChatModel
            return GeminiChatModel(api_key=api_key)

        raise ValueError(
            f"Unknown LLM provider: '{provider}'. Valid options: gemini"
        )

    @staticmethod
    def for_provider(provider: str) -> ModelClientFactory:
        """Return an api_key → client callable bound to one provider."""
        return lambda api_key: ChatModelFactory.create(provider, api_key=api_key)
