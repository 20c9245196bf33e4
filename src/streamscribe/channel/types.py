"""
channel/types.py — Chat Channel Data Models

Transport-agnostic shapes exchanged between the agent and a ChatTransport.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class IndicatorState(str, Enum):
    """Presence state shown next to an assistant message."""
    THINKING = "AI_STATE_THINKING"
    CLEARED = "AI_STATE_CLEARED"


class InboundMessage(BaseModel):
    """A message event delivered by the transport."""
    model_config = ConfigDict(frozen=True)

    channel_id: str
    text: Optional[str] = None
    is_agent_generated: bool = False
    message_id: Optional[str] = None

    @property
    def is_user_input(self) -> bool:
        """True for non-empty text that did not come from an agent."""
        return bool(self.text) and not self.is_agent_generated


class PublishedMessage(BaseModel):
    """Transport acknowledgement for a newly created message."""
    model_config = ConfigDict(frozen=True)

    id: str
    conversation_id: str


class IndicatorEvent(BaseModel):
    """An out-of-band presence event scoped to one message."""
    model_config = ConfigDict(frozen=True)

    state: IndicatorState
    conversation_id: str
    message_id: str

    @property
    def event_type(self) -> str:
        if self.state == IndicatorState.THINKING:
            return "ai_indicator.update"
        return "ai_indicator.clear"
