import functools
import logging
from typing import Optional

from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.types import Message

logger = logging.getLogger(__name__)


async def safe_send_message(message: Message, text: str, user_id: int, **kwargs) -> Optional[Message]:
    """Reply to a message; Telegram errors are logged instead of raised."""
    try:
        return await message.answer(text, **kwargs)
    except TelegramAPIError as e:
        logger.error(f"❌ Failed to send message to user {user_id}: {e}")
        return None


def handle_telegram_errors(handler):
    """
    Decorator for handlers: Telegram API errors are logged and swallowed,
    everything else propagates to ErrorHandlerMiddleware.
    """
    @functools.wraps(handler)
    async def wrapper(*args, **kwargs):
        try:
            return await handler(*args, **kwargs)
        except TelegramBadRequest as e:
            # e.g. "message is not modified" after a double tap
            logger.warning(f"⚠️ Telegram bad request in {handler.__name__}: {e}")
        except TelegramAPIError as e:
            logger.error(f"❌ Telegram API error in {handler.__name__}: {e}")
        return None
    return wrapper
