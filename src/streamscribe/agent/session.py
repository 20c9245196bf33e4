"""
agent/session.py — Per-Channel Agent Session

One AgentSession exists per bound channel. It owns the model conversation
handle and the last-interaction timestamp that an external idle reaper
reads to decide when to tear the agent down.

The session is an explicitly owned object handed to every operation that
needs it; there is no module-level handle.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable, Optional

from streamscribe.agent.classifier import ErrorKind, classify
from streamscribe.agent.prompt import build_seed_history
from streamscribe.brain.llm_client import ChatSession, ModelClientFactory
from streamscribe.brain.types import GenerationConfig
from streamscribe.exceptions import (
    InitAuthInvalidError,
    InitAuthMissingError,
    InitRateLimitedError,
)
from streamscribe.observability.logger import get_logger

log = get_logger(__name__)

Clock = Callable[[], float]


class AgentSession:
    """Model handle + interaction bookkeeping for one channel."""

    def __init__(
        self,
        session_id: str,
        channel_id: str,
        model_session: ChatSession,
        clock: Clock = time.time,
    ):
        self.id = session_id
        self.channel_id = channel_id
        self._model_session: Optional[ChatSession] = model_session
        self._clock = clock
        self.created_at = clock()
        self.last_interaction_at = self.created_at

    @property
    def model_session(self) -> Optional[ChatSession]:
        """The live conversation handle; None once disposed."""
        return self._model_session

    @property
    def is_disposed(self) -> bool:
        return self._model_session is None

    def touch(self) -> None:
        """Record that a message was received just now. Last writer wins."""
        self.last_interaction_at = self._clock()

    def idle_seconds(self, now: Optional[float] = None) -> float:
        current = self._clock() if now is None else now
        return max(0.0, current - self.last_interaction_at)

    async def dispose(self) -> None:
        """Release the model handle. Safe to call more than once."""
        model_session, self._model_session = self._model_session, None
        if model_session is None:
            return
        await model_session.close()
        log.debug("session.disposed", session_id=self.id, channel_id=self.channel_id)


async def initialize_session(
    api_key: Optional[str],
    system_prompt: str,
    *,
    model_client_factory: ModelClientFactory,
    model: str,
    channel_id: str,
    generation: Optional[GenerationConfig] = None,
    clock: Clock = time.time,
) -> AgentSession:
    """
    Create the model conversation seeded with the persona and an
    acknowledgement turn.

    Raises:
        InitAuthMissingError:  api_key absent or blank (no client is built).
        InitAuthInvalidError:  the provider rejected the key.
        InitRateLimitedError:  the provider refused on quota.
        Anything else the provider raised, unchanged.
    """
    if not api_key or not api_key.strip():
        raise InitAuthMissingError("Gemini API key is required")

    generation = generation or GenerationConfig()

    try:
        client = model_client_factory(api_key)
        model_session = await client.create_session(
            model=model,
            seed_history=build_seed_history(system_prompt),
            generation=generation,
        )
    except Exception as e:
        log.error(
            "session.init_failed",
            channel_id=channel_id,
            model=model,
            error=str(e),
            error_type=type(e).__name__,
        )
        kind = classify(e)
        if kind == ErrorKind.RATE_LIMITED:
            raise InitRateLimitedError(
                "Gemini API quota exceeded. Please check your API usage."
            ) from e
        if kind == ErrorKind.AUTH_INVALID:
            raise InitAuthInvalidError(
                "Invalid Gemini API key. Please verify your API key configuration."
            ) from e
        raise

    session = AgentSession(
        session_id=f"agent_{uuid.uuid4().hex[:12]}",
        channel_id=channel_id,
        model_session=model_session,
        clock=clock,
    )
    log.info(
        "session.initialized",
        session_id=session.id,
        channel_id=channel_id,
        model=model,
        max_output_tokens=generation.max_output_tokens,
        temperature=generation.temperature,
    )
    return session
