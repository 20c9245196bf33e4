"""
brain/types.py — StreamScribe Brain Data Models

Shared types used by model clients and the agent. Providers translate these
into their native request shapes.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


# ─────────────────────────────────────────────────────────────────────────────
# Seed history
# ─────────────────────────────────────────────────────────────────────────────


class SeedTurn(BaseModel):
    """One turn of the history a chat session is created with."""
    role: Role
    text: str

    @classmethod
    def user(cls, text: str) -> "SeedTurn":
        return cls(role=Role.USER, text=text)

    @classmethod
    def model(cls, text: str) -> "SeedTurn":
        return cls(role=Role.MODEL, text=text)


# ─────────────────────────────────────────────────────────────────────────────
# Generation config
# ─────────────────────────────────────────────────────────────────────────────


class GenerationConfig(BaseModel):
    """
    Sampling settings fixed for the lifetime of a chat session.
    """
    max_output_tokens: int = Field(default=2048, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
