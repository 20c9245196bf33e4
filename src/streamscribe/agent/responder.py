"""
agent/responder.py — Streaming Responder

Turns one inbound message into one live-updating assistant reply.

State machine (one StreamingResponder per accepted message, single use):

    IDLE ──accept──▶ AWAITING_PLACEHOLDER ──ack──▶ STREAMING ──exhausted──▶ COMPLETED
      │                     │                          │
      └─ignored             └─publish failed──▶ FAILED ◀┘ model / republish error

  IDLE                  Entry filter. Empty text or agent-generated input is
                        ignored with zero side effects; this check runs before
                        anything else.
  AWAITING_PLACEHOLDER  session.touch(), then an empty agent-generated message
                        is published. If that fails there is nothing to
                        update, so the run ends FAILED/UNKNOWN silently.
  STREAMING             THINKING indicator, then model chunks are appended to
                        the placeholder and the full text is republished after
                        each one (full replace, strictly sequential).
  COMPLETED             CLEARED indicator.
  FAILED                A new agent-generated message explains the failure
                        category. The placeholder is never touched again.

Concurrent responders never share a PlaceholderReply, so they can interleave
freely; replies may finish out of submission order.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from streamscribe.agent.classifier import ErrorKind, classify, message_for
from streamscribe.agent.session import AgentSession
from streamscribe.brain.llm_client import ChatSession
from streamscribe.channel.transport import ChatTransport
from streamscribe.channel.types import IndicatorEvent, IndicatorState, InboundMessage
from streamscribe.observability.logger import get_logger

log = get_logger(__name__)


class ResponderState(str, Enum):
    IDLE = "idle"
    AWAITING_PLACEHOLDER = "awaiting_placeholder"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ResponderState.COMPLETED, ResponderState.FAILED)


@dataclass
class PlaceholderReply:
    """The assistant message being filled in. Text only ever grows."""
    id: str
    conversation_id: str
    channel_id: str
    accumulated_text: str = ""

    def append(self, chunk: str) -> str:
        self.accumulated_text += chunk
        return self.accumulated_text


@dataclass
class ResponseOutcome:
    state: ResponderState
    placeholder: Optional[PlaceholderReply] = None
    error_kind: Optional[ErrorKind] = None
    chunk_count: int = 0

    @property
    def accepted(self) -> bool:
        return self.state != ResponderState.IDLE


class _StreamCancelled(Exception):
    """Raised internally when the cancellation token is set mid-run."""


class StreamingResponder:
    """
    Drives one reply. Construct a fresh instance per inbound message.

    Args:
        session:                    Owning agent session (touched on accept).
        transport:                  Channel the reply is published to.
        republish_interval:         Seconds between republishes. 0 republishes
                                    every chunk; above 0 debounces, with a final
                                    republish once the stream is exhausted.
        clear_indicator_on_failure: Send a best-effort CLEARED indicator after
                                    the error message on failure.
        cancel_event:               Optional token; when set the run stops
                                    before the next chunk or republish.
    """

    def __init__(
        self,
        session: AgentSession,
        transport: ChatTransport,
        *,
        republish_interval: float = 0.0,
        clear_indicator_on_failure: bool = True,
        cancel_event: Optional[asyncio.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session = session
        self._transport = transport
        self._republish_interval = republish_interval
        self._clear_on_failure = clear_indicator_on_failure
        self._cancel_event = cancel_event
        self._clock = clock

        self.state = ResponderState.IDLE
        self._chunk_count = 0
        self._published_text = ""
        self._last_publish_at: Optional[float] = None
        self._log = log.bind(session_id=session.id, channel_id=session.channel_id)

    # ── Public API ────────────────────────────────────────────────────────────

    async def run(self, message: InboundMessage) -> ResponseOutcome:
        """
        Run the machine to a terminal state. Never raises for per-message
        failures; only task cancellation (CancelledError) propagates.
        """
        if self.state != ResponderState.IDLE:
            raise RuntimeError("StreamingResponder is single-use")

        if not message.is_user_input:
            return ResponseOutcome(state=ResponderState.IDLE)

        model_session = self._session.model_session
        if model_session is None:
            self._log.debug("responder.ignored_disposed_session")
            return ResponseOutcome(state=ResponderState.IDLE)

        self._session.touch()
        self.state = ResponderState.AWAITING_PLACEHOLDER

        try:
            published = await self._transport.publish_message(text="", agent_generated=True)
        except Exception as e:
            self.state = ResponderState.FAILED
            self._log.error(
                "responder.placeholder_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return ResponseOutcome(state=self.state, error_kind=ErrorKind.UNKNOWN)

        placeholder = PlaceholderReply(
            id=published.id,
            conversation_id=published.conversation_id,
            channel_id=self._session.channel_id,
        )
        self.state = ResponderState.STREAMING
        thinking_sent = False

        try:
            self._check_cancelled()
            await self._transport.publish_indicator_event(
                self._indicator(IndicatorState.THINKING, placeholder)
            )
            thinking_sent = True
            self._log.debug("responder.stream.start", placeholder_id=placeholder.id)
            await self._stream(model_session, message.text or "", placeholder)
        except _StreamCancelled:
            self.state = ResponderState.FAILED
            self._log.info(
                "responder.cancelled",
                placeholder_id=placeholder.id,
                chunks=self._chunk_count,
            )
            return self._outcome(placeholder, ErrorKind.UNKNOWN)
        except Exception as e:
            return await self._fail(e, placeholder, thinking_sent)

        self.state = ResponderState.COMPLETED
        try:
            await self._transport.publish_indicator_event(
                self._indicator(IndicatorState.CLEARED, placeholder)
            )
        except Exception as e:
            # Reply text is already complete; not worth an error message
            self._log.warning(
                "responder.clear_indicator_failed",
                placeholder_id=placeholder.id,
                error=str(e),
            )

        self._log.info(
            "responder.completed",
            placeholder_id=placeholder.id,
            chunks=self._chunk_count,
            chars=len(placeholder.accumulated_text),
        )
        return self._outcome(placeholder)

    # ── Streaming ─────────────────────────────────────────────────────────────

    async def _stream(
        self,
        model_session: ChatSession,
        text: str,
        placeholder: PlaceholderReply,
    ) -> None:
        stream = model_session.stream_reply(text)
        try:
            async for chunk in stream:
                self._check_cancelled()
                placeholder.append(chunk)
                self._chunk_count += 1
                if self._due_for_republish():
                    await self._republish(placeholder)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        # Only reachable with debouncing: flush whatever the interval held back
        if placeholder.accumulated_text != self._published_text:
            await self._republish(placeholder)

    def _due_for_republish(self) -> bool:
        if self._republish_interval <= 0 or self._last_publish_at is None:
            return True
        return self._clock() - self._last_publish_at >= self._republish_interval

    async def _republish(self, placeholder: PlaceholderReply) -> None:
        self._check_cancelled()
        text = placeholder.accumulated_text
        await self._transport.update_message(
            message_id=placeholder.id,
            text=text,
            agent_generated=True,
        )
        self._published_text = text
        self._last_publish_at = self._clock()

    # ── Failure path ──────────────────────────────────────────────────────────

    async def _fail(
        self,
        error: Exception,
        placeholder: PlaceholderReply,
        thinking_sent: bool,
    ) -> ResponseOutcome:
        self.state = ResponderState.FAILED
        kind = classify(error)
        self._log.error(
            "responder.failed",
            placeholder_id=placeholder.id,
            error_kind=kind.value,
            chunks=self._chunk_count,
            error=str(error),
            error_type=type(error).__name__,
        )

        try:
            await self._transport.publish_message(text=message_for(kind), agent_generated=True)
        except Exception as e:
            self._log.error(
                "responder.error_message_failed",
                placeholder_id=placeholder.id,
                error=str(e),
            )

        if thinking_sent and self._clear_on_failure:
            try:
                await self._transport.publish_indicator_event(
                    self._indicator(IndicatorState.CLEARED, placeholder)
                )
            except Exception as e:
                self._log.warning(
                    "responder.clear_indicator_failed",
                    placeholder_id=placeholder.id,
                    error=str(e),
                )

        return self._outcome(placeholder, kind)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise _StreamCancelled()

    @staticmethod
    def _indicator(state: IndicatorState, placeholder: PlaceholderReply) -> IndicatorEvent:
        return IndicatorEvent(
            state=state,
            conversation_id=placeholder.conversation_id,
            message_id=placeholder.id,
        )

    def _outcome(
        self,
        placeholder: PlaceholderReply,
        error_kind: Optional[ErrorKind] = None,
    ) -> ResponseOutcome:
        return ResponseOutcome(
            state=self.state,
            placeholder=placeholder,
            error_kind=error_kind,
            chunk_count=self._chunk_count,
        )
