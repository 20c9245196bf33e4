"""
tests/unit/test_prompt_and_classifier.py — Pure helpers

Covers:
  - build_system_prompt is deterministic and embeds the date
  - persona and formatting rules are present
  - seed history is [user: prompt, model: acknowledgement]
  - status code → ErrorKind mapping, including unmapped / absent codes
  - non-ServiceError exceptions classify as UNKNOWN
  - each kind has a fixed message
"""

from __future__ import annotations

from datetime import date

import pytest

from streamscribe.agent.classifier import ErrorKind, classify, classify_status, message_for
from streamscribe.agent.prompt import (
    SEED_ACKNOWLEDGEMENT,
    build_seed_history,
    build_system_prompt,
    format_prompt_date,
)
from streamscribe.brain.types import Role
from streamscribe.exceptions import (
    LLMError,
    LLMRateLimitError,
    ServiceError,
    TransportError,
)


# ─────────────────────────────────────────────────────────────────────────────
# Prompt builder
# ─────────────────────────────────────────────────────────────────────────────


class TestPromptDate:
    def test_long_month_no_padding(self):
        assert format_prompt_date(date(2026, 3, 7)) == "March 7, 2026"

    def test_december(self):
        assert format_prompt_date(date(1999, 12, 31)) == "December 31, 1999"


class TestBuildSystemPrompt:
    def test_deterministic(self):
        d = date(2026, 10, 19)
        assert build_system_prompt(d) == build_system_prompt(d)

    def test_embeds_date(self):
        prompt = build_system_prompt(date(2026, 10, 19))
        assert "Today's date is October 19, 2026." in prompt

    def test_different_dates_differ_only_in_date(self):
        a = build_system_prompt(date(2026, 1, 1))
        b = build_system_prompt(date(2026, 1, 2))
        assert a != b
        assert a.replace("January 1, 2026", "X") == b.replace("January 2, 2026", "X")

    def test_persona_and_rules(self):
        prompt = build_system_prompt(date(2026, 10, 19))
        assert prompt.startswith("You are an expert AI Writing Assistant.")
        assert "markdown" in prompt
        assert '"Here are the changes:"' in prompt
        assert "without unnecessary preambles" in prompt


class TestSeedHistory:
    def test_two_turns(self):
        history = build_seed_history("PERSONA")
        assert [t.role for t in history] == [Role.USER, Role.MODEL]
        assert history[0].text == "PERSONA"
        assert history[1].text == SEED_ACKNOWLEDGEMENT


# ─────────────────────────────────────────────────────────────────────────────
# Error classifier
# ─────────────────────────────────────────────────────────────────────────────


class TestClassifyStatus:
    @pytest.mark.parametrize(
        "status, kind",
        [
            (429, ErrorKind.RATE_LIMITED),
            (401, ErrorKind.AUTH_INVALID),
            (403, ErrorKind.AUTH_INVALID),
            (500, ErrorKind.SERVICE_UNAVAILABLE),
            (503, ErrorKind.SERVICE_UNAVAILABLE),
            (400, ErrorKind.UNKNOWN),
            (502, ErrorKind.UNKNOWN),
            (404, ErrorKind.UNKNOWN),
            (None, ErrorKind.UNKNOWN),
        ],
    )
    def test_mapping(self, status, kind):
        assert classify_status(status) == kind

    def test_same_code_same_kind(self):
        assert classify_status(429) is classify_status(429)


class TestClassify:
    def test_llm_error_uses_status(self):
        assert classify(LLMRateLimitError("quota")) == ErrorKind.RATE_LIMITED

    def test_transport_error_uses_status(self):
        assert classify(TransportError("down", status_code=503)) == ErrorKind.SERVICE_UNAVAILABLE

    def test_service_error_without_status(self):
        assert classify(ServiceError("?")) == ErrorKind.UNKNOWN

    def test_llm_error_default_status_is_none(self):
        assert classify(LLMError("boom")) == ErrorKind.UNKNOWN

    def test_plain_exception_is_unknown(self):
        err = RuntimeError("boom")
        err.status = 429  # duck-typed fields are not consulted
        assert classify(err) == ErrorKind.UNKNOWN


class TestMessageFor:
    def test_rate_limited_message(self):
        text = message_for(ErrorKind.RATE_LIMITED)
        assert "Quota Exceeded" in text
        assert "https://console.cloud.google.com/" in text

    def test_auth_message(self):
        assert "Authentication Error" in message_for(ErrorKind.AUTH_INVALID)

    def test_unavailable_message(self):
        assert "Service Unavailable" in message_for(ErrorKind.SERVICE_UNAVAILABLE)

    def test_unknown_message(self):
        assert message_for(ErrorKind.UNKNOWN) == (
            "I apologize, but I encountered an error while processing your request."
        )

    def test_messages_are_distinct(self):
        assert len({message_for(k) for k in ErrorKind}) == len(ErrorKind)
