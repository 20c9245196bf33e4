"""
agent/classifier.py — Failure Classification

Maps a failure to a closed ErrorKind and the chat text shown to the user.
Only ServiceError carries a status code; every other exception is UNKNOWN.
Pure functions: no I/O, never raise.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from streamscribe.exceptions import ServiceError


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    AUTH_INVALID = "auth_invalid"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


_STATUS_KINDS: dict[int, ErrorKind] = {
    429: ErrorKind.RATE_LIMITED,
    401: ErrorKind.AUTH_INVALID,
    403: ErrorKind.AUTH_INVALID,
    500: ErrorKind.SERVICE_UNAVAILABLE,
    503: ErrorKind.SERVICE_UNAVAILABLE,
}

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMITED: (
        "⚠️ **Gemini API Quota Exceeded**\n\n"
        "The Gemini API has exceeded its usage quota. Please:\n"
        "1. Check your Google Cloud account at https://console.cloud.google.com/\n"
        "2. Verify your API key has sufficient quota\n"
        "3. Consider upgrading your plan if needed"
    ),
    ErrorKind.AUTH_INVALID: (
        "⚠️ **Authentication Error**\n\n"
        "The Gemini API key appears to be invalid or expired. "
        "Please check your API key configuration."
    ),
    ErrorKind.SERVICE_UNAVAILABLE: (
        "⚠️ **Service Unavailable**\n\n"
        "The Gemini service is temporarily unavailable. "
        "Please try again in a few moments."
    ),
    ErrorKind.UNKNOWN: (
        "I apologize, but I encountered an error while processing your request."
    ),
}


def classify_status(status_code: Optional[int]) -> ErrorKind:
    if status_code is None:
        return ErrorKind.UNKNOWN
    return _STATUS_KINDS.get(status_code, ErrorKind.UNKNOWN)


def classify(error: BaseException) -> ErrorKind:
    if isinstance(error, ServiceError):
        return classify_status(error.status_code)
    return ErrorKind.UNKNOWN


def message_for(kind: ErrorKind) -> str:
    return _MESSAGES.get(kind, _MESSAGES[ErrorKind.UNKNOWN])
