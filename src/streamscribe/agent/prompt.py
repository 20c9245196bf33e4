"""
agent/prompt.py — Writing Assistant Persona

Builds the system instruction that seeds every model session. Pure: the
output depends only on the date passed in.
"""

from __future__ import annotations

from datetime import date

from streamscribe.brain.types import SeedTurn

SEED_ACKNOWLEDGEMENT = (
    "Understood. I'm ready to assist you with writing tasks. "
    "How can I help you today?"
)

# Fixed English names; strftime("%B") follows the process locale
_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_prompt_date(current_date: date) -> str:
    """Render a date as 'October 19, 2026'."""
    return f"{_MONTHS[current_date.month - 1]} {current_date.day}, {current_date.year}"


def build_system_prompt(current_date: date) -> str:
    today = format_prompt_date(current_date)
    return f"""You are an expert AI Writing Assistant. Your primary purpose is to be a collaborative writing partner.

**Your Core Capabilities:**
- Content Creation, Improvement, Style Adaptation, Brainstorming, and Writing Coaching.
- **Current Date**: Today's date is {today}. Use this for time-sensitive queries.

**Response Format:**
- Be direct and production-ready.
- Use clear formatting with markdown.
- Never begin responses with phrases like "Here's the edit:", "Here are the changes:", or similar introductory statements.
- Provide responses directly and professionally without unnecessary preambles.

**Guidelines:**
- Help users create high-quality written content
- Adapt your writing style to match the user's needs
- Provide constructive feedback and suggestions
- Be helpful, creative, and accurate

Your goal is to provide accurate, helpful written content and be an excellent writing companion."""


def build_seed_history(system_prompt: str) -> list[SeedTurn]:
    """The persona as a user turn followed by the model's acknowledgement."""
    return [
        SeedTurn.user(system_prompt),
        SeedTurn.model(SEED_ACKNOWLEDGEMENT),
    ]
