"""
channel/ — Chat transport interface and implementations.

TelegramTransport is imported from streamscribe.channel.telegram directly so
that python-telegram-bot is only loaded when it is used.
"""

from streamscribe.channel.transport import ChatTransport, InboundHandler
from streamscribe.channel.types import (
    IndicatorEvent,
    IndicatorState,
    InboundMessage,
    PublishedMessage,
)

__all__ = [
    "ChatTransport",
    "InboundHandler",
    "IndicatorEvent",
    "IndicatorState",
    "InboundMessage",
    "PublishedMessage",
]
