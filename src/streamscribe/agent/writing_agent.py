"""
agent/writing_agent.py — Channel-Bound Writing Assistant

Binds one model session to one chat channel:

    agent = WritingAgent(transport, channel_id="42", api_key=key,
                         model_client_factory=ChatModelFactory.for_provider("gemini"))
    await agent.init()        # fatal errors propagate; nothing is subscribed
    ...                       # each inbound message → detached StreamingResponder task
    await agent.dispose()     # idempotent

Inbound messages are not serialized. Every event gets its own task, so a
slow reply never blocks the next one. By default disposal leaves in-flight
replies running to completion; cancel_on_dispose=True makes them stop before
their next chunk or republish instead.
"""

from __future__ import annotations

import asyncio
import time
from datetime import date
from typing import Any, Callable, Optional

from streamscribe.agent.prompt import build_system_prompt
from streamscribe.agent.responder import ResponseOutcome, StreamingResponder
from streamscribe.agent.session import AgentSession, initialize_session
from streamscribe.brain import ChatModelFactory
from streamscribe.brain.llm_client import ModelClientFactory
from streamscribe.brain.types import GenerationConfig
from streamscribe.channel.transport import ChatTransport
from streamscribe.channel.types import InboundMessage
from streamscribe.observability.logger import bind_channel, get_logger

log = get_logger(__name__)


class WritingAgent:
    """One writing assistant bound to one channel."""

    def __init__(
        self,
        transport: ChatTransport,
        channel_id: str,
        *,
        api_key: Optional[str],
        model_client_factory: ModelClientFactory,
        model: str = "gemini-2.0-flash",
        generation: Optional[GenerationConfig] = None,
        republish_interval: float = 0.0,
        clear_indicator_on_failure: bool = True,
        cancel_on_dispose: bool = False,
        today: Callable[[], date] = date.today,
        clock: Callable[[], float] = time.time,
    ):
        self._transport = transport
        self._channel_id = channel_id
        self._api_key = api_key
        self._model_client_factory = model_client_factory
        self._model = model
        self._generation = generation or GenerationConfig()
        self._republish_interval = republish_interval
        self._clear_indicator_on_failure = clear_indicator_on_failure
        self._cancel_on_dispose = cancel_on_dispose
        self._today = today
        self._clock = clock

        self._session: Optional[AgentSession] = None
        self._subscribed = False
        self._disposed = False
        # Model handle release waits for in-flight replies still streaming through it
        self._release_pending = False
        self._release_task: Optional[asyncio.Task[None]] = None
        self._cancel_event = asyncio.Event()
        # Strong refs so detached tasks are not garbage-collected mid-stream
        self._tasks: set[asyncio.Task[ResponseOutcome]] = set()

    # ── Factory ───────────────────────────────────────────────────────────────

    @classmethod
    def from_settings(cls, settings, transport: ChatTransport, channel_id: str) -> "WritingAgent":
        provider = settings.default_llm_provider
        return cls(
            transport,
            channel_id,
            api_key=settings.api_key_for(provider),
            model_client_factory=ChatModelFactory.for_provider(provider),
            model=settings.default_llm_model,
            generation=GenerationConfig(
                max_output_tokens=settings.llm.max_output_tokens,
                temperature=settings.llm.temperature,
            ),
            republish_interval=settings.streaming.republish_interval_seconds,
            clear_indicator_on_failure=settings.streaming.clear_indicator_on_failure,
            cancel_on_dispose=settings.agent.cancel_on_dispose,
        )

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def user(self) -> Any:
        return self._transport.user

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def session(self) -> Optional[AgentSession]:
        return self._session

    @property
    def last_interaction(self) -> Optional[float]:
        """Epoch seconds of the last accepted message (init time before any)."""
        return self._session.last_interaction_at if self._session else None

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def init(self) -> None:
        """
        Create the model session and subscribe to the channel.

        Raises InitAuthMissingError / InitAuthInvalidError / InitRateLimitedError
        (or the provider's own error) without subscribing.
        """
        if self._session is not None:
            raise RuntimeError("WritingAgent.init() called twice")
        if self._disposed:
            raise RuntimeError("WritingAgent has been disposed")

        try:
            self._session = await initialize_session(
                self._api_key,
                build_system_prompt(self._today()),
                model_client_factory=self._model_client_factory,
                model=self._model,
                channel_id=self._channel_id,
                generation=self._generation,
                clock=self._clock,
            )
        except Exception as e:
            log.error(
                "agent.init_failed",
                channel_id=self._channel_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        self._transport.on_inbound_message(self.handle_message)
        self._subscribed = True
        log.info("agent.ready", channel_id=self._channel_id, session_id=self._session.id)

    async def dispose(self) -> None:
        """
        Unsubscribe, disconnect and release the model handle. Idempotent.

        While replies are in flight the model handle stays open; it is released
        when the last of them finishes (or by drain()).
        """
        if self._disposed:
            return
        self._disposed = True

        if self._cancel_on_dispose:
            self._cancel_event.set()

        if self._subscribed:
            self._transport.unsubscribe()
            self._subscribed = False
        try:
            await self._transport.disconnect()
        finally:
            if self._tasks:
                self._release_pending = True
            else:
                await self._release_session()
            log.info(
                "agent.disposed",
                channel_id=self._channel_id,
                in_flight=len(self._tasks),
            )

    async def drain(self) -> list[ResponseOutcome]:
        """Wait for every in-flight reply and return their outcomes."""
        outcomes: list[ResponseOutcome] = []
        while self._tasks:
            batch = list(self._tasks)
            done = await asyncio.gather(*batch, return_exceptions=True)
            # Done-callbacks run on a later loop iteration; drop the batch now
            self._tasks.difference_update(batch)
            outcomes.extend(o for o in done if isinstance(o, ResponseOutcome))
        if self._release_pending:
            await self._release_session()
        return outcomes

    # ── Inbound ───────────────────────────────────────────────────────────────

    async def handle_message(self, message: InboundMessage) -> None:
        """
        Subscription handler. Spawns a detached responder task and returns
        immediately, so the transport never waits on a reply.
        """
        if self._session is None:
            log.debug("agent.not_initialized", channel_id=self._channel_id)
            return
        # Cheap pre-check; the responder applies the same filter first
        if not message.is_user_input:
            return

        responder = StreamingResponder(
            self._session,
            self._transport,
            republish_interval=self._republish_interval,
            clear_indicator_on_failure=self._clear_indicator_on_failure,
            cancel_event=self._cancel_event,
        )
        task = asyncio.create_task(
            self._respond(responder, message),
            name=f"responder:{self._channel_id}:{message.message_id or '-'}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    async def _respond(self, responder: StreamingResponder, message: InboundMessage) -> ResponseOutcome:
        # Runs in the task's own context copy
        bind_channel(self._channel_id, message_id=message.message_id)
        return await responder.run(message)

    async def _release_session(self) -> None:
        """Close the model handle; AgentSession.dispose() makes repeats harmless."""
        self._release_pending = False
        if self._session is not None:
            await self._session.dispose()

    def _on_task_done(self, task: asyncio.Task[ResponseOutcome]) -> None:
        self._tasks.discard(task)
        if self._release_pending and not self._tasks:
            self._release_pending = False
            self._release_task = asyncio.get_running_loop().create_task(self._release_session())
        if task.cancelled():
            log.info("agent.responder_task_cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            log.error(
                "agent.responder_task_crashed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )
