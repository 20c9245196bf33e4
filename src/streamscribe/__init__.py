"""StreamScribe — a writing assistant that streams model replies into chat.

Example:
    from streamscribe import WritingAgent
    from streamscribe.config.settings import load_settings

    settings = load_settings()
    agent = WritingAgent.from_settings(settings, transport, channel_id="42")
    await agent.init()
"""

from streamscribe.agent import (
    AgentSession,
    ErrorKind,
    ResponderState,
    StreamingResponder,
    WritingAgent,
    build_system_prompt,
)

__version__ = "0.1.0"

__all__ = [
    "WritingAgent",
    "AgentSession",
    "StreamingResponder",
    "ResponderState",
    "ErrorKind",
    "build_system_prompt",
]
