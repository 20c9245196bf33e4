"""
brain/gemini_client.py — Google Gemini Chat Client

Uses the `google-genai` SDK (google.genai) async surface:
    client.aio.chats.create(...)          -> AsyncChat holding the history
    await chat.send_message_stream(text)  -> async iterator of responses

Install: pip install google-genai
Get key: https://aistudio.google.com/app/apikey
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import NoReturn, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from streamscribe.brain.llm_client import (
    BaseChatModel,
    ChatSession,
    LLMAuthError,
    LLMError,
    LLMRateLimitError,
    LLMServiceUnavailableError,
)
from streamscribe.brain.types import GenerationConfig, Role, SeedTurn
from streamscribe.observability.logger import get_logger

log = get_logger(__name__)

_PROVIDER = "gemini"


class GeminiChatSession(ChatSession):
    """Wraps a google-genai AsyncChat."""

    def __init__(self, chat, model: str):
        self._chat = chat
        self._model = model

    async def stream_reply(self, text: str) -> AsyncIterator[str]:
        log.debug("gemini.stream.start", model=self._model, input_chars=len(text))
        chunks = 0
        try:
            stream = await self._chat.send_message_stream(text)
            async for response in stream:
                piece = response.text
                # Metadata-only chunks (usage, finish reason) carry no text
                if not piece:
                    continue
                chunks += 1
                yield piece
        except LLMError:
            raise
        except Exception as e:
            _raise_normalised(e)
        log.debug("gemini.stream.complete", model=self._model, chunks=chunks)

    async def close(self) -> None:
        self._chat = None


class GeminiChatModel(BaseChatModel):
    """
    Google Gemini chat client using the google-genai SDK.

    Requires: pip install google-genai
    """

    def __init__(self, api_key: str):
        super().__init__(api_key=api_key)
        self._client = genai.Client(api_key=api_key)

    async def create_session(
        self,
        model: str,
        seed_history: list[SeedTurn],
        generation: GenerationConfig,
    ) -> GeminiChatSession:
        config = genai_types.GenerateContentConfig(
            temperature=generation.temperature,
            max_output_tokens=generation.max_output_tokens,
        )
        try:
            chat = self._client.aio.chats.create(
                model=model,
                config=config,
                history=self._to_provider_history(seed_history),
            )
        except Exception as e:
            _raise_normalised(e)

        log.debug(
            "gemini.session.created",
            model=model,
            seed_turns=len(seed_history),
            max_output_tokens=generation.max_output_tokens,
            temperature=generation.temperature,
        )
        return GeminiChatSession(chat, model)

    # ── Private helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _to_provider_history(seed_history: list[SeedTurn]) -> list[genai_types.Content]:
        """Translate SeedTurn list → Gemini Contents."""
        return [
            genai_types.Content(
                role="model" if turn.role == Role.MODEL else "user",
                parts=[genai_types.Part(text=turn.text)],
            )
            for turn in seed_history
        ]


def _status_of(exc: Exception) -> Optional[int]:
    if isinstance(exc, genai_errors.APIError):
        return exc.code
    return None


def _raise_normalised(exc: Exception) -> NoReturn:
    """Re-raise a google-genai / transport exception as an LLMError subclass."""
    status = _status_of(exc)
    message = str(exc)
    if status == 429:
        raise LLMRateLimitError(message, provider=_PROVIDER, status_code=status) from exc
    if status in (401, 403):
        raise LLMAuthError(message, provider=_PROVIDER, status_code=status) from exc
    if status in (500, 503):
        raise LLMServiceUnavailableError(message, provider=_PROVIDER, status_code=status) from exc
    raise LLMError(message, provider=_PROVIDER, status_code=status) from exc
