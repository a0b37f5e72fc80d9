import asyncio
import logging
from aiogram import Bot, Dispatcher

from alice_magic.config import config as magic_config
from alice_magic.controller import build_registry
from bot.core.config import load_config
from bot.middleware.error_handler import ErrorHandlerMiddleware, LoggingMiddleware
from bot.handlers.commands import router as commands_router
from bot.handlers.photo_processing import router as photo_processing_router

logger = logging.getLogger(__name__)


def create_dispatcher() -> Dispatcher:
    dp = Dispatcher()

    # One controller per chat, shared by all handlers
    dp["sessions"] = build_registry(magic_config)

    # Middleware
    dp.message.middleware(ErrorHandlerMiddleware())
    dp.callback_query.middleware(ErrorHandlerMiddleware())
    dp.message.middleware(LoggingMiddleware())
    dp.callback_query.middleware(LoggingMiddleware())

    # Routers
    dp.include_router(commands_router)
    dp.include_router(photo_processing_router)
    return dp


async def main():
    config = load_config()

    # Logging setup
    logging.basicConfig(
        level=getattr(logging, config.effective_log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    bot = Bot(token=config.bot_token)
    dp = create_dispatcher()

    logger.info("Bot started...")
    try:
        await dp.start_polling(bot)
    finally:
        await bot.session.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
