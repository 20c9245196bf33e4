"""
exceptions.py — StreamScribe Unified Error Hierarchy

All StreamScribe-specific exceptions live here. Collaborator adapters
(Gemini, Telegram) normalise their SDK errors into these types at the
boundary, so everything above the adapters deals with one hierarchy.

Import from here, not from individual modules:
    from streamscribe.exceptions import TransportError, InitAuthMissingError

Hierarchy:
    StreamScribeError
    ├── ServiceError            (carries status_code; input to the classifier)
    │   ├── LLMError
    │   │   ├── LLMAuthError
    │   │   ├── LLMRateLimitError
    │   │   └── LLMServiceUnavailableError
    │   └── TransportError
    └── AgentInitError
        ├── InitAuthMissingError
        ├── InitAuthInvalidError
        └── InitRateLimitedError
"""

from __future__ import annotations

from typing import Optional


# ─────────────────────────────────────────────────────────────────────────────
# Root
# ─────────────────────────────────────────────────────────────────────────────

class StreamScribeError(Exception):
    """Base class for all StreamScribe exceptions."""


# ─────────────────────────────────────────────────────────────────────────────
# Collaborator (service) errors
# ─────────────────────────────────────────────────────────────────────────────

class ServiceError(StreamScribeError):
    """
    An error reported by an external collaborator (model API or chat transport).

    status_code is the HTTP-style code the collaborator reported, or None when
    the failure carried no code (network reset, SDK bug, ...). The error
    classifier looks at nothing else.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LLMError(ServiceError):
    """Base exception for all model-provider errors."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.provider = provider


class LLMAuthError(LLMError):
    """API key missing, invalid or expired (401 / 403)."""


class LLMRateLimitError(LLMError):
    """Quota exceeded or rate limit hit (429)."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = 429,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after = retry_after


class LLMServiceUnavailableError(LLMError):
    """Provider-side outage (500 / 503)."""


class TransportError(ServiceError):
    """A chat-transport call (publish, update, indicator, subscribe) failed."""


# ─────────────────────────────────────────────────────────────────────────────
# Initialization errors: fatal, the agent never becomes active
# ─────────────────────────────────────────────────────────────────────────────

class AgentInitError(StreamScribeError):
    """Base for errors that abort agent initialization."""


class InitAuthMissingError(AgentInitError):
    """No model credential was supplied."""


class InitAuthInvalidError(AgentInitError):
    """The model provider rejected the credential during session creation."""


class InitRateLimitedError(AgentInitError):
    """The model provider refused session creation because of quota."""


__all__ = [
    "StreamScribeError",
    "ServiceError",
    "LLMError",
    "LLMAuthError",
    "LLMRateLimitError",
    "LLMServiceUnavailableError",
    "TransportError",
    "AgentInitError",
    "InitAuthMissingError",
    "InitAuthInvalidError",
    "InitRateLimitedError",
]
