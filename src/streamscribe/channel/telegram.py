"""
channel/telegram.py — Telegram Chat Transport

ChatTransport implementation on python-telegram-bot (v20+, asyncio).
One instance is bound to one Telegram chat.

Mapping:
  - inbound          MessageHandler filtered to the bound chat (new messages,
                     no /commands); is_agent_generated = sender is a bot
  - publish_message  bot.send_message
  - update_message   bot.edit_message_text (full replace)
  - THINKING         bot.send_chat_action(TYPING)
  - CLEARED          no-op; Telegram expires chat actions by itself
  - errors           telegram.error.* → TransportError with an HTTP-style code

Telegram refuses empty messages, so empty text is rendered as a
placeholder glyph until the first chunk arrives.

Text is sent as Markdown. A streamed reply is often cut mid-entity
("**bold" with no closing marker), which Telegram rejects; those sends are
retried once as plain text.
"""

from __future__ import annotations

from typing import Any, Optional

from telegram import Update
from telegram.constants import ChatAction, ParseMode
from telegram.error import (
    BadRequest,
    Forbidden,
    InvalidToken,
    NetworkError,
    RetryAfter,
    TelegramError,
    TimedOut,
)
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from streamscribe.channel.transport import ChatTransport, InboundHandler
from streamscribe.channel.types import (
    IndicatorEvent,
    IndicatorState,
    InboundMessage,
    PublishedMessage,
)
from streamscribe.config.settings import ConfigError
from streamscribe.exceptions import TransportError
from streamscribe.observability.logger import get_logger

log = get_logger(__name__)


_MAX_MESSAGE_LEN = 4096
_DEFAULT_PLACEHOLDER = "…"


class TelegramTransport(ChatTransport):
    """
    Binds one Telegram chat to the agent.

    The Application may be shared between several transports (one bot serving
    many chats). Only the transport created with owns_application=True stops
    and shuts it down on disconnect().
    """

    def __init__(
        self,
        application: Application,
        chat_id: int,
        placeholder_text: str = _DEFAULT_PLACEHOLDER,
        owns_application: bool = True,
        markdown: bool = True,
    ):
        self._app = application
        self._chat_id = chat_id
        self._placeholder_text = placeholder_text or _DEFAULT_PLACEHOLDER
        self._owns_application = owns_application
        self._parse_mode: Optional[str] = ParseMode.MARKDOWN if markdown else None
        self._handler: Optional[InboundHandler] = None
        self._telegram_handler: Optional[MessageHandler] = None

    @classmethod
    def from_settings(
        cls,
        settings,
        chat_id: int,
        application: Optional[Application] = None,
    ) -> "TelegramTransport":
        """
        Build a transport from Settings.

        Without an application one is built from TELEGRAM_BOT_TOKEN and owned
        by the transport. A shared application is never shut down by it.
        """
        owns_application = application is None
        if application is None:
            if not settings.telegram_bot_token:
                raise ConfigError("TELEGRAM_BOT_TOKEN is required for the Telegram transport")
            application = Application.builder().token(settings.telegram_bot_token).build()
        return cls(
            application,
            chat_id,
            placeholder_text=settings.telegram.placeholder_text,
            owns_application=owns_application,
            markdown=settings.telegram.markdown,
        )

    @property
    def user(self) -> Any:
        return self._app.bot

    @property
    def chat_id(self) -> int:
        return self._chat_id

    # ── Subscription ──────────────────────────────────────────────────────────

    def on_inbound_message(self, handler: InboundHandler) -> None:
        self.unsubscribe()
        self._handler = handler
        self._telegram_handler = MessageHandler(
            filters.UpdateType.MESSAGE
            & filters.Chat(chat_id=self._chat_id)
            & ~filters.COMMAND,
            self._on_update,
        )
        self._app.add_handler(self._telegram_handler)
        log.info("telegram.subscribed", chat_id=self._chat_id)

    def unsubscribe(self) -> None:
        if self._telegram_handler is None:
            return
        self._app.remove_handler(self._telegram_handler)
        self._telegram_handler = None
        self._handler = None
        log.info("telegram.unsubscribed", chat_id=self._chat_id)

    async def _on_update(self, update: Update, ctx: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or self._handler is None:
            return
        sender = message.from_user
        await self._handler(
            InboundMessage(
                channel_id=str(message.chat_id),
                text=message.text,
                is_agent_generated=bool(sender is not None and sender.is_bot),
                message_id=str(message.message_id),
            )
        )

    # ── Outbound ──────────────────────────────────────────────────────────────

    async def publish_message(self, text: str, agent_generated: bool) -> PublishedMessage:
        try:
            sent = await self._with_plain_fallback(
                self._app.bot.send_message,
                chat_id=self._chat_id,
                text=self._render(text),
            )
        except TelegramError as e:
            raise _to_transport_error(e, "send_message") from e
        return PublishedMessage(id=str(sent.message_id), conversation_id=str(self._chat_id))

    async def update_message(self, message_id: str, text: str, agent_generated: bool) -> None:
        try:
            await self._with_plain_fallback(
                self._app.bot.edit_message_text,
                text=self._render(text),
                chat_id=self._chat_id,
                message_id=int(message_id),
            )
        except BadRequest as e:
            # Re-sending identical text (e.g. past the length cap) is not a failure
            if "not modified" in str(e).lower():
                log.debug("telegram.edit_not_modified", message_id=message_id)
                return
            raise _to_transport_error(e, "edit_message_text") from e
        except TelegramError as e:
            raise _to_transport_error(e, "edit_message_text") from e

    async def publish_indicator_event(self, event: IndicatorEvent) -> None:
        if event.state == IndicatorState.CLEARED:
            log.debug("telegram.indicator_noop", event_type=event.event_type, message_id=event.message_id)
            return
        try:
            await self._app.bot.send_chat_action(
                chat_id=self._chat_id,
                action=ChatAction.TYPING,
            )
        except TelegramError as e:
            raise _to_transport_error(e, "send_chat_action") from e
        log.debug("telegram.indicator_sent", event_type=event.event_type, message_id=event.message_id)

    async def disconnect(self) -> None:
        self.unsubscribe()
        if not self._owns_application:
            return
        app = self._app
        try:
            if app.updater is not None and app.updater.running:
                await app.updater.stop()
            if app.running:
                await app.stop()
            await app.shutdown()
        except TelegramError as e:
            raise _to_transport_error(e, "disconnect") from e
        log.info("telegram.disconnected", chat_id=self._chat_id)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _render(self, text: str) -> str:
        if not text:
            return self._placeholder_text
        # edit_message_text cannot split a message; keep the head
        return text[:_MAX_MESSAGE_LEN]

    async def _with_plain_fallback(self, send, **kwargs):
        if self._parse_mode is None:
            return await send(**kwargs)
        try:
            return await send(parse_mode=self._parse_mode, **kwargs)
        except BadRequest as e:
            if "can't parse entities" not in str(e).lower():
                raise
            log.debug("telegram.markdown_rejected", error=str(e))
            return await send(**kwargs)


def _status_for(exc: TelegramError) -> Optional[int]:
    # BadRequest and TimedOut subclass NetworkError, so order matters
    if isinstance(exc, RetryAfter):
        return 429
    if isinstance(exc, InvalidToken):
        return 401
    if isinstance(exc, Forbidden):
        return 403
    if isinstance(exc, BadRequest):
        return 400
    if isinstance(exc, (TimedOut, NetworkError)):
        return 503
    return None


def _to_transport_error(exc: TelegramError, operation: str) -> TransportError:
    status = _status_for(exc)
    log.warning(
        "telegram.call_failed",
        operation=operation,
        status_code=status,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return TransportError(f"Telegram {operation} failed: {exc}", status_code=status)
