"""
Process entrypoint.

Runs three things in one asyncio event loop:
1. The Telegram application (long polling)
2. The report scheduler
3. The liveness endpoint (uvicorn)

python-telegram-bot is driven through its manual lifecycle so it can
share the loop with uvicorn. uvicorn owns signal handling; when it
stops serving, the scheduler and the bot are shut down in turn.
"""

import asyncio
import logging
import sys
from typing import Optional

import structlog
import uvicorn

from expense_assistant.bot.health import create_health_app
from expense_assistant.bot.scheduler import ReportScheduler
from expense_assistant.bot.telegram_bot import TelegramBot
from expense_assistant.config import Settings, get_settings, validate_all_settings
from expense_assistant.orchestrator import create_app_components


logger = structlog.get_logger("expense_assistant.runner")


async def run(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    components = create_app_components(settings)

    bot = TelegramBot(components.router, token=settings.telegram.token)
    bot.register_handlers()

    scheduler = ReportScheduler(
        aggregator=components.aggregator,
        store=components.store,
        deliver=bot.send_report,
        clock=components.clock,
        settings=settings.reports,
        timezone=settings.app.timezone,
        audit_logger=components.audit_logger,
    )

    server = uvicorn.Server(uvicorn.Config(
        create_health_app(),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.app.log_level.lower(),
    ))

    application = bot.application
    async with application:
        await application.start()
        await bot.register_commands()
        await application.updater.start_polling(
            drop_pending_updates=settings.telegram.drop_pending_updates,
        )
        scheduler.start()
        logger.info(
            "bot_started",
            storage=settings.storage.backend,
            port=settings.server.port,
            jobs=scheduler.get_jobs(),
        )
        try:
            await server.serve()
        finally:
            scheduler.stop()
            await application.updater.stop()
            await application.stop()
            logger.info("bot_stopped")


def main() -> None:
    results = validate_all_settings()
    failed = {name: value for name, value in results.items() if name.endswith("_error")}
    if failed:
        logging.basicConfig(level=logging.ERROR, format="%(message)s")
        logger.error("invalid_configuration", errors=failed)
        sys.exit(1)

    settings = get_settings()
    logging.basicConfig(level=settings.app.log_level, format="%(message)s")
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
