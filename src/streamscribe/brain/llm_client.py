"""
brain/llm_client.py — Abstract Chat Model Client

Provider implementations subclass BaseChatModel and ChatSession.

A BaseChatModel creates ChatSessions; a ChatSession owns the multi-turn
history on the provider side and streams replies to new user input. Nothing
above this layer sees provider SDK types or provider exceptions: every
failure surfaces as an LLMError subclass with status_code populated when the
provider reported one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Callable, Optional

from streamscribe.brain.types import GenerationConfig, SeedTurn
from streamscribe.exceptions import (  # noqa: F401  re-export
    LLMAuthError,
    LLMError,
    LLMRateLimitError,
    LLMServiceUnavailableError,
)


class ChatSession(ABC):
    """
    A live, provider-side conversation.

    stream_reply() returns a lazy, finite, non-restartable async iterator of
    text chunks. Errors may surface either when the request is issued or in
    the middle of iteration.
    """

    @abstractmethod
    def stream_reply(self, text: str) -> AsyncIterator[str]:
        """Send user text and stream the reply chunk by chunk."""
        ...

    async def close(self) -> None:
        """Release provider resources. Default: nothing to release."""
        return None


class BaseChatModel(ABC):
    """
    Abstract base for model provider clients.

    Subclasses must implement:
      - create_session() -> seed a ChatSession with history + generation config
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    @abstractmethod
    async def create_session(
        self,
        model: str,
        seed_history: list[SeedTurn],
        generation: GenerationConfig,
    ) -> ChatSession:
        """Create a chat session. Raises LLMAuthError / LLMRateLimitError."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


# Signature of the factory the agent uses to build a client from an API key.
ModelClientFactory = Callable[[str], BaseChatModel]
