"""Telegram transport — sends and receives messages via Telegram Bot API.

This is the default transport. Requires TELEGRAM_BOT_TOKEN in .env.
Every text message (commands included) goes to the registered handler.
"""

import logging
from telegram import Update
from telegram.ext import Application, MessageHandler, ContextTypes, filters

from discipline import config
from discipline.transport import Transport, IncomingMessage

log = logging.getLogger(__name__)

# Telegram limit per message
MAX_MESSAGE_LENGTH = 4096

# Message handler callback — set by main.py during initialization
_on_message_callback = None


def set_message_handler(callback) -> None:
    """Register the function to handle incoming messages.

    Signature: async def callback(msg: IncomingMessage) -> list[str]
    Returns the reply texts, sent in order.
    """
    global _on_message_callback
    _on_message_callback = callback


def claim_or_check_owner(user_id: int) -> bool:
    """First user to write becomes the owner; afterwards only they pass."""
    if not config.OWNER_USER_ID:
        config.set_owner_user_id(user_id)
        log.info("Owner auto-detected: user_id=%d", user_id)
        return True
    return user_id == config.OWNER_USER_ID


class TelegramTransport(Transport):
    """Telegram Bot API transport."""

    def __init__(self):
        self._app: Application | None = None

    @property
    def name(self) -> str:
        return "telegram"

    async def start(self) -> None:
        if not config.TELEGRAM_BOT_TOKEN:
            log.warning("TELEGRAM_BOT_TOKEN not set, Telegram transport disabled")
            return

        self._app = Application.builder().token(config.TELEGRAM_BOT_TOKEN).build()
        self._app.add_handler(MessageHandler(filters.TEXT, self._handle_message))

        await self._app.initialize()
        await self._app.start()
        await self._app.updater.start_polling(drop_pending_updates=True)
        log.info("Telegram transport started")

    async def stop(self) -> None:
        if self._app:
            await self._app.updater.stop()
            await self._app.stop()
            await self._app.shutdown()
            log.info("Telegram transport stopped")

    async def send_message(self, user_id: int, text: str) -> None:
        if not self._app:
            log.warning("Telegram not started, cannot send message")
            return
        try:
            for i in range(0, len(text), MAX_MESSAGE_LENGTH):
                await self._app.bot.send_message(
                    chat_id=user_id,
                    text=text[i:i + MAX_MESSAGE_LENGTH],
                )
        except Exception as e:
            log.error("Failed to send Telegram message to %d: %s", user_id, e)

    async def _handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not update.message or not update.message.text:
            return

        user_id = update.effective_user.id
        if not claim_or_check_owner(user_id):
            await update.message.reply_text("Sorry, this is a personal habit tracker.")
            return

        msg = IncomingMessage(
            user_id=user_id,
            channel_id=update.effective_chat.id,
            text=update.message.text,
            transport="telegram",
        )

        if _on_message_callback is None:
            await update.message.reply_text("Still starting up... try again in a moment.")
            return
        for reply in await _on_message_callback(msg):
            await self.send_message(msg.channel_id, reply)
