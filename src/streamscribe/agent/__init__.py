"""
agent/ — StreamScribe Agent Core

Public API:
    from streamscribe.agent import WritingAgent, StreamingResponder, AgentSession

Component overview:
    build_system_prompt   Writing-assistant persona for a given date
    AgentSession          Model handle + last-interaction timestamp per channel
    StreamingResponder    Per-message state machine: placeholder → stream → done
    classify/message_for  Failure → ErrorKind → user-facing text
    WritingAgent          Binds a session to a channel and dispatches messages
"""

from streamscribe.agent.classifier import ErrorKind, classify, classify_status, message_for
from streamscribe.agent.prompt import (
    SEED_ACKNOWLEDGEMENT,
    build_seed_history,
    build_system_prompt,
    format_prompt_date,
)
from streamscribe.agent.responder import (
    PlaceholderReply,
    ResponderState,
    ResponseOutcome,
    StreamingResponder,
)
from streamscribe.agent.session import AgentSession, initialize_session
from streamscribe.agent.writing_agent import WritingAgent

__all__ = [
    "WritingAgent",
    "AgentSession",
    "initialize_session",
    "StreamingResponder",
    "ResponderState",
    "ResponseOutcome",
    "PlaceholderReply",
    "ErrorKind",
    "classify",
    "classify_status",
    "message_for",
    "build_system_prompt",
    "build_seed_history",
    "format_prompt_date",
    "SEED_ACKNOWLEDGEMENT",
]
