"""
observability/logger.py — StreamScribe Structured Logger

Sets up structlog with:
  - JSON output to a rotating log file
  - Optional console output, human-readable (dev mode) or JSON (prod mode)
  - Consistent fields on every log line: timestamp, level, event, logger,
    plus channel_id when bound with bind_channel()
  - Chatty third-party HTTP loggers capped at WARNING

Usage:
    from streamscribe.observability.logger import get_logger, setup_logging

    setup_logging(settings.logging)   # call once at startup
    log = get_logger(__name__)
    log.info("responder.stream.start", placeholder_id="m-1")
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

from streamscribe.config.settings import LoggingConfig

# SDK loggers that log every HTTP request at INFO
_NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "telegram",
    "telegram.ext",
    "google_genai",
]


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────


def setup_logging(config: Optional[LoggingConfig] = None) -> Path:
    """
    Configure structlog and stdlib logging from a LoggingConfig. Call once at
    startup, typically with settings.logging. Returns the log file path.

    The file always receives JSON. json_format=False switches only the
    console to the coloured dev renderer.
    """
    config = config or LoggingConfig()
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "streamscribe.log"
    numeric_level = getattr(logging, config.level, logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    def _formatter(renderer: Any) -> logging.Formatter:
        return structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=shared_processors,
        )

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=config.max_file_size_mb * 1024 * 1024,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    handlers: list[logging.Handler] = [file_handler]

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_renderer = (
            structlog.processors.JSONRenderer()
            if config.json_format
            else structlog.dev.ConsoleRenderer(colors=True)
        )
        console_handler.setFormatter(_formatter(console_renderer))
        handlers.append(console_handler)

    for handler in handlers:
        handler.setLevel(numeric_level)

    # structlog routes through stdlib logging
    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return log_file


def get_logger(name: str = "streamscribe", **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a bound logger with optional initial context values.

    Example:
        log = get_logger(__name__, component="responder")
        log.info("responder.placeholder.published", placeholder_id="m-1")
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def bind_channel(channel_id: str, **extra: Any) -> None:
    """
    Bind the channel id to all subsequent log calls in this async context.

    Each responder task runs in its own copy of the context, so binding
    inside a task never leaks into another channel's log lines.
    """
    structlog.contextvars.bind_contextvars(channel_id=channel_id, **extra)


def clear_context() -> None:
    """Clear bound context vars at the end of a unit of work."""
    structlog.contextvars.clear_contextvars()
