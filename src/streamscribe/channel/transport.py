"""
channel/transport.py — Abstract Chat Transport

The agent talks to a chat service only through this interface. A transport
instance is bound to one channel.

Implementations must:
  - deliver every message posted in the channel to the subscribed handler,
    including the agent's own echoes (flagged is_agent_generated=True)
  - treat update_message() as a full replace of the message text
  - raise TransportError (with status_code when known) on any failure
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from streamscribe.channel.types import IndicatorEvent, InboundMessage, PublishedMessage

InboundHandler = Callable[[InboundMessage], Awaitable[None]]


class ChatTransport(ABC):

    @property
    def user(self) -> Any:
        """Identity the agent posts as. None when the transport has none."""
        return None

    @abstractmethod
    def on_inbound_message(self, handler: InboundHandler) -> None:
        """Subscribe handler to new messages in the bound channel."""
        ...

    @abstractmethod
    def unsubscribe(self) -> None:
        """Drop the inbound subscription. Safe to call when not subscribed."""
        ...

    @abstractmethod
    async def publish_message(self, text: str, agent_generated: bool) -> PublishedMessage:
        ...

    @abstractmethod
    async def update_message(self, message_id: str, text: str, agent_generated: bool) -> None:
        ...

    @abstractmethod
    async def publish_indicator_event(self, event: IndicatorEvent) -> None:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...
