"""
Test conftest — isolate API key environment variables and provide in-memory
collaborators (chat transport, chat model) so no test touches the network.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from streamscribe.brain.llm_client import BaseChatModel, ChatSession
from streamscribe.brain.types import GenerationConfig, SeedTurn
from streamscribe.channel.transport import ChatTransport, InboundHandler
from streamscribe.channel.types import IndicatorEvent, InboundMessage, PublishedMessage
from streamscribe.exceptions import TransportError

_API_KEY_ENV_VARS = [
    "GEMINI_API_KEY",
    "TELEGRAM_BOT_TOKEN",
    "STREAMSCRIBE_CONFIG",
]


@pytest.fixture(autouse=True)
def _clear_api_keys_from_env(monkeypatch):
    """Remove API key env vars for every test so Settings() behaves as if no
    keys are present unless the test explicitly provides them. Also disables
    .env file loading so local developer .env files don't leak credentials."""
    for var in _API_KEY_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    import streamscribe.config.settings as settings_module
    from pydantic_settings import SettingsConfigDict
    patched_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )
    monkeypatch.setattr(settings_module.Settings, "model_config", patched_config)
    monkeypatch.setattr(settings_module, "_singleton", None)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory chat transport
# ─────────────────────────────────────────────────────────────────────────────


class RecordingTransport(ChatTransport):
    """
    Records every call in order in self.calls:
        ("publish", id, text, agent_generated)
        ("update", id, text, agent_generated)
        ("indicator", state, conversation_id, message_id)
        ("unsubscribe",) / ("disconnect",)

    Failures are scripted: publish_errors is consumed one entry per publish
    call (None = succeed); update_errors maps the 1-based update call number
    to the exception it raises; indicator_errors maps an IndicatorState to an
    exception raised every time it is sent.
    """

    def __init__(self, conversation_id: str = "messaging:general"):
        self.conversation_id = conversation_id
        self.calls: list[tuple] = []
        self.handler: Optional[InboundHandler] = None
        self.publish_errors: list[Optional[Exception]] = []
        self.update_errors: dict[int, Exception] = {}
        self.indicator_errors: dict = {}
        self.disconnect_error: Optional[Exception] = None
        self._next_id = 0
        self._update_count = 0

    @property
    def user(self):
        return {"id": "writing-assistant"}

    def on_inbound_message(self, handler: InboundHandler) -> None:
        self.handler = handler

    def unsubscribe(self) -> None:
        self.calls.append(("unsubscribe",))
        self.handler = None

    async def publish_message(self, text: str, agent_generated: bool) -> PublishedMessage:
        await asyncio.sleep(0)
        if self.publish_errors:
            err = self.publish_errors.pop(0)
            if err is not None:
                raise err
        self._next_id += 1
        message_id = f"msg-{self._next_id}"
        self.calls.append(("publish", message_id, text, agent_generated))
        return PublishedMessage(id=message_id, conversation_id=self.conversation_id)

    async def update_message(self, message_id: str, text: str, agent_generated: bool) -> None:
        await asyncio.sleep(0)
        self._update_count += 1
        err = self.update_errors.get(self._update_count)
        if err is not None:
            raise err
        self.calls.append(("update", message_id, text, agent_generated))

    async def publish_indicator_event(self, event: IndicatorEvent) -> None:
        await asyncio.sleep(0)
        err = self.indicator_errors.get(event.state)
        if err is not None:
            raise err
        self.calls.append(("indicator", event.state, event.conversation_id, event.message_id))

    async def disconnect(self) -> None:
        self.calls.append(("disconnect",))
        if self.disconnect_error is not None:
            raise self.disconnect_error

    # ── Inspection helpers ────────────────────────────────────────────────────

    def of(self, kind: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == kind]

    def updates_for(self, message_id: str) -> list[str]:
        return [c[2] for c in self.calls if c[0] == "update" and c[1] == message_id]

    def indicator_states(self) -> list:
        return [c[1] for c in self.calls if c[0] == "indicator"]

    async def deliver(self, message: InboundMessage) -> None:
        assert self.handler is not None, "not subscribed"
        await self.handler(message)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory chat model
# ─────────────────────────────────────────────────────────────────────────────


class FakeChatSession(ChatSession):
    """
    Streams scripted chunks. replies maps input text → chunks; default_chunks
    is used for anything else. If error is set it is raised after
    fail_after chunks have been yielded.
    """

    def __init__(
        self,
        default_chunks: Optional[list[str]] = None,
        replies: Optional[dict[str, list[str]]] = None,
        error: Optional[Exception] = None,
        fail_after: int = 0,
    ):
        self.default_chunks = default_chunks or []
        self.replies = replies or {}
        self.error = error
        self.fail_after = fail_after
        self.inputs: list[str] = []
        self.closed = 0

    async def stream_reply(self, text: str):
        self.inputs.append(text)
        chunks = self.replies.get(text, self.default_chunks)
        for i, chunk in enumerate(chunks):
            if self.error is not None and i == self.fail_after:
                raise self.error
            await asyncio.sleep(0)
            yield chunk
        if self.error is not None and self.fail_after >= len(chunks):
            raise self.error

    async def close(self) -> None:
        self.closed += 1


class FakeChatModel(BaseChatModel):
    def __init__(self, session: Optional[ChatSession] = None, error: Optional[Exception] = None):
        super().__init__(api_key=None)
        self.session = session or FakeChatSession()
        self.error = error
        self.created_with: list[dict] = []

    async def create_session(
        self,
        model: str,
        seed_history: list[SeedTurn],
        generation: GenerationConfig,
    ) -> ChatSession:
        self.created_with.append(
            {"model": model, "seed_history": seed_history, "generation": generation}
        )
        if self.error is not None:
            raise self.error
        return self.session


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def chat_session() -> FakeChatSession:
    return FakeChatSession()


@pytest.fixture
def chat_model(chat_session) -> FakeChatModel:
    return FakeChatModel(session=chat_session)


@pytest.fixture
def transport_error():
    def _make(status: Optional[int] = None) -> TransportError:
        return TransportError("transport down", status_code=status)
    return _make


def user_message(text: Optional[str], agent: bool = False, channel_id: str = "general") -> InboundMessage:
    return InboundMessage(channel_id=channel_id, text=text, is_agent_generated=agent)


@pytest.fixture
def make_message():
    return user_message
