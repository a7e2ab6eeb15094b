"""
Telegram Transport

DESIGN DECISION: The transport is thin. It converts a python-telegram-bot
Update into an IncomingEvent, hands it to the MessageRouter and sends
back whatever replies come out. It holds no ledger logic and no state.

A single MessageHandler covers text (commands included) and photos, so
command precedence is decided by the router, not by handler order.
Edited messages are ignored.
"""

from typing import Optional, Union

import structlog
from telegram import BotCommand, Update
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from expense_assistant.models.ledger import (
    Digest,
    IncomingEvent,
    PhotoSize,
    Reply,
    ReplyKind,
)
from expense_assistant.orchestrator import MessageRouter


logger = structlog.get_logger("expense_assistant.bot")

BOT_COMMANDS = [
    BotCommand("start", "Welcome and system manual"),
    BotCommand("stats", "Today's briefing"),
    BotCommand("setlimit", "Set the daily budget"),
    BotCommand("addbill", "Save a receipt photo"),
    BotCommand("bills", "List stored bills"),
    BotCommand("view", "Show one stored bill"),
    BotCommand("clear", "Wipe today's entries"),
    BotCommand("logout", "Lock this chat"),
]

MESSAGE_FILTER = (filters.TEXT | filters.PHOTO) & ~filters.UpdateType.EDITED


class TelegramBot:
    """Binds a MessageRouter to a python-telegram-bot Application."""

    def __init__(
        self,
        router: MessageRouter,
        token: Optional[str] = None,
        application: Optional[Application] = None,
    ):
        if application is None:
            if not token:
                raise ValueError("A bot token is required to build the application")
            application = Application.builder().token(token).build()
        self._router = router
        self.application = application

    @staticmethod
    def to_event(update: Update) -> Optional[IncomingEvent]:
        """Convert an update to the core's event shape; None if it has no message."""
        message = update.effective_message
        if message is None:
            return None

        user = update.effective_user
        return IncomingEvent(
            sender_id=user.id if user else None,
            sender_name=user.first_name if user else None,
            text=message.text,
            photo=[
                PhotoSize(file_id=size.file_id, width=size.width, height=size.height)
                for size in (message.photo or ())
            ],
        )

    async def on_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        event = self.to_event(update)
        if event is None:
            return

        replies = await self._router.handle(event)
        chat_id = update.effective_chat.id
        for reply in replies:
            await self.send_reply(context.bot, chat_id, reply)

    async def send_reply(self, bot, chat_id: Union[int, str], reply: Reply) -> None:
        """Send one reply, retrying as plain text if Telegram rejects the markup."""
        parse_mode = ParseMode.MARKDOWN if reply.markdown else None
        try:
            await self._send(bot, chat_id, reply, parse_mode)
        except BadRequest as exc:
            if parse_mode is None:
                raise
            logger.warning("markdown_rejected", chat_id=str(chat_id), error=str(exc))
            await self._send(bot, chat_id, reply, None)

    @staticmethod
    async def _send(bot, chat_id, reply: Reply, parse_mode: Optional[str]) -> None:
        if reply.kind == ReplyKind.PHOTO:
            await bot.send_photo(
                chat_id=chat_id,
                photo=reply.file_id,
                caption=reply.text or None,
                parse_mode=parse_mode,
            )
        else:
            await bot.send_message(chat_id=chat_id, text=reply.text, parse_mode=parse_mode)

    async def send_report(self, digest: Digest) -> None:
        await self.send_reply(
            self.application.bot,
            digest.recipient_id,
            Reply.text_message(digest.text, markdown=True),
        )

    def register_handlers(self) -> None:
        self.application.add_handler(MessageHandler(MESSAGE_FILTER, self.on_message))
        self.application.add_error_handler(self.on_error)

    async def register_commands(self) -> None:
        await self.application.bot.set_my_commands(BOT_COMMANDS)

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(
            "update_failed",
            error=str(context.error),
            error_type=type(context.error).__name__,
            exc_info=context.error,
        )
