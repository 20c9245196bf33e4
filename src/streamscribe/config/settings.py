"""
config/settings.py — StreamScribe Runtime Settings

Merges config.yaml (defaults/structure) with .env (secrets).
Pydantic-powered — all fields are validated and typed.

  - Field validators reject out-of-range sampling and streaming values at
    parse time
  - validate_all() performs cross-field startup validation and raises
    ConfigError with a human-readable, numbered list of every problem found
  - load_settings() respects STREAMSCRIBE_CONFIG env var as a fallback
    when no explicit config_path argument is given
"""

from __future__ import annotations

import os
import threading as _threading
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class ConfigError(Exception):
    """Raised by validate_all() when one or more config problems are found."""


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_KNOWN_PROVIDERS = {"gemini"}


# ─────────────────────────────────────────────────────────────────────────────
# Sub-models
# ─────────────────────────────────────────────────────────────────────────────

class AgentConfig(BaseModel):
    # Abort in-flight replies when the agent is disposed
    cancel_on_dispose: bool = False


class LLMConfig(BaseModel):
    default_provider: str = "gemini"
    default_model: str = "gemini-2.0-flash"
    temperature: float = 0.7
    max_output_tokens: int = 2048

    @field_validator("default_provider")
    @classmethod
    def _known_provider(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in _KNOWN_PROVIDERS:
            raise ValueError(
                f"llm.default_provider '{v}' is not supported. "
                f"Supported: {sorted(_KNOWN_PROVIDERS)}"
            )
        return v

    @field_validator("temperature")
    @classmethod
    def _valid_temperature(cls, v: float) -> float:
        if not (0.0 <= v <= 2.0):
            raise ValueError("llm.temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_output_tokens")
    @classmethod
    def _positive_tokens(cls, v: int) -> int:
        if v < 1:
            raise ValueError("llm.max_output_tokens must be >= 1")
        return v


class StreamingConfig(BaseModel):
    # 0 republishes on every chunk
    republish_interval_seconds: float = 0.0
    clear_indicator_on_failure: bool = True

    @field_validator("republish_interval_seconds")
    @classmethod
    def _non_negative_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("streaming.republish_interval_seconds must be >= 0")
        return v


class TelegramConfig(BaseModel):
    placeholder_text: str = "…"
    # Send as Markdown, falling back to plain text when Telegram rejects it
    markdown: bool = True

    @field_validator("placeholder_text")
    @classmethod
    def _non_empty_placeholder(cls, v: str) -> str:
        if not v.strip():
            raise ValueError(
                "telegram.placeholder_text must not be empty; "
                "Telegram rejects empty messages."
            )
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: str = "./data/logs"
    max_file_size_mb: int = 100
    backup_count: int = 5
    console_output: bool = False
    json_format: bool = True

    @field_validator("level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level '{v}' is not valid. "
                f"Must be one of: {sorted(_VALID_LOG_LEVELS)}"
            )
        return upper


# ─────────────────────────────────────────────────────────────────────────────
# Root Settings
# ─────────────────────────────────────────────────────────────────────────────

class Settings(BaseSettings):
    """
    StreamScribe runtime settings.

    Priority (highest to lowest):
      1. Environment variables
      2. .env file
      3. config.yaml
      4. Field defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    # -- Secrets from .env ---------------------------------------------------
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    telegram_bot_token: Optional[str] = Field(default=None, alias="TELEGRAM_BOT_TOKEN")

    # -- Structured config (from config.yaml) --------------------------------
    agent: AgentConfig = Field(default_factory=AgentConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("gemini_api_key", "telegram_bot_token", mode="before")
    @classmethod
    def _blank_secret_is_none(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    # -- Convenience properties ----------------------------------------------

    @property
    def default_llm_provider(self) -> str:
        return self.llm.default_provider

    @property
    def default_llm_model(self) -> str:
        return self.llm.default_model

    @property
    def log_level(self) -> str:
        return self.logging.level.upper()

    @property
    def log_dir(self) -> Path:
        return Path(self.logging.log_dir)

    def api_key_for(self, provider: str) -> Optional[str]:
        if provider == "gemini":
            return self.gemini_api_key
        return None

    def validate_all(self) -> None:
        """
        Full startup validation. Raises ConfigError listing every problem found.

        Pydantic field validators catch type/value errors at parse time; this
        catches cross-field problems (API key presence for the chosen
        provider, debounce settings that cannot work with the transport).
        """
        errors: list[str] = []

        provider = self.llm.default_provider
        if not self.api_key_for(provider):
            errors.append(
                f"LLM provider '{provider}' requires {provider.upper()}_API_KEY "
                f"to be set in your .env file."
            )

        if self.streaming.republish_interval_seconds > 10:
            errors.append(
                "streaming.republish_interval_seconds is above 10s; replies "
                "would appear frozen. Use 0 (every chunk) or a sub-second value."
            )

        if errors:
            numbered = "\n".join(f"  {i+1}. {e}" for i, e in enumerate(errors))
            raise ConfigError(
                f"\n\nStreamScribe startup failed — {len(errors)} configuration "
                f"problem(s) found:\n\n{numbered}\n\n"
                f"Fix the issues above in config/config.yaml or your .env file "
                f"and restart.\n"
            )


# ─────────────────────────────────────────────────────────────────────────────
# Loader + singleton
# ─────────────────────────────────────────────────────────────────────────────

_singleton: Optional[Settings] = None
_singleton_lock = _threading.Lock()

_KNOWN_SECTIONS = {"agent", "llm", "streaming", "telegram", "logging"}


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _resolve_config_path(config_path: str | Path | None) -> Path:
    """
    Resolve the config file path with this priority:
      1. Explicit config_path argument
      2. STREAMSCRIBE_CONFIG environment variable
      3. Default: config/config.yaml
    """
    if config_path is not None:
        return Path(config_path)
    env_path = os.environ.get("STREAMSCRIBE_CONFIG")
    if env_path:
        return Path(env_path)
    return Path("config/config.yaml")


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings by merging config.yaml with environment variables."""
    global _singleton
    yaml_data = _load_yaml(_resolve_config_path(config_path))
    init_kwargs = {k: v for k, v in yaml_data.items() if k in _KNOWN_SECTIONS}

    instance = Settings(**init_kwargs)
    with _singleton_lock:
        _singleton = instance
    return instance


def get_settings() -> Settings:
    """
    Return the global Settings singleton, loading it from the default config
    path on first use. Guarded by _singleton_lock against double loading.
    """
    global _singleton
    if _singleton is not None:
        return _singleton
    with _singleton_lock:
        if _singleton is None:
            yaml_data = _load_yaml(_resolve_config_path(None))
            _singleton = Settings(
                **{k: v for k, v in yaml_data.items() if k in _KNOWN_SECTIONS}
            )
    return _singleton
