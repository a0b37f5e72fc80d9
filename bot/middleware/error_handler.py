import logging
import time
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject, User

from alice_magic.errors import MSG_GENERIC

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseMiddleware):
    """Last line of defense: log unexpected errors and tell the user something went wrong."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)
        except Exception as e:
            user: User | None = data.get("event_from_user")
            logger.error(f"❌ Unhandled error for user {user.id if user else '-'}: {e}", exc_info=True)
            try:
                if isinstance(event, Message):
                    await event.answer(MSG_GENERIC)
                elif isinstance(event, CallbackQuery):
                    await event.answer(MSG_GENERIC, show_alert=True)
            except Exception as notify_error:
                logger.error(f"Failed to notify user about the error: {notify_error}")
            return None


class LoggingMiddleware(BaseMiddleware):
    """Logs every incoming message and callback with its handling time."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user: User | None = data.get("event_from_user")
        if isinstance(event, CallbackQuery):
            description = f"callback '{event.data}'"
        elif isinstance(event, Message):
            description = f"message ({event.content_type})"
        else:
            description = type(event).__name__

        start_time = time.monotonic()
        try:
            return await handler(event, data)
        finally:
            logger.info(f"📨 {description} from user {user.id if user else '-'} handled in {time.monotonic() - start_time:.3f}s")
