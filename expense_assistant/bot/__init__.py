"""Chat transport, report scheduling and liveness endpoint."""

from expense_assistant.bot.health import create_health_app
from expense_assistant.bot.scheduler import ReportScheduler
from expense_assistant.bot.telegram_bot import BOT_COMMANDS, TelegramBot

__all__ = ["BOT_COMMANDS", "ReportScheduler", "TelegramBot", "create_health_app"]
