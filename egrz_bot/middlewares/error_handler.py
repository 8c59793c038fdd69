"""Global error handler"""

import logging

from aiogram.exceptions import TelegramAPIError
from aiogram.types import ErrorEvent

from egrz_bot.core.config import Messages


logger = logging.getLogger(__name__)


async def global_error_handler(event: ErrorEvent) -> bool:
    """Глобальная обработка всех необработанных исключений"""
    update = event.update
    user_id = None
    details = None

    if update.message:
        user_id = update.message.from_user.id if update.message.from_user else None
        details = f"message: {update.message.text}"
    elif update.callback_query:
        user_id = update.callback_query.from_user.id
        details = f"callback: {update.callback_query.data}"

    logger.error(
        "❌ UNHANDLED ERROR | Update: %s | User: %s | Type: %s | Message: %s | %s",
        update.update_id,
        user_id,
        type(event.exception).__name__,
        event.exception,
        details,
    )
    logger.exception("Full traceback for update %s:", update.update_id, exc_info=event.exception)

    try:
        if update.message:
            await update.message.answer(Messages.INTERNAL_ERROR)
        elif update.callback_query:
            await update.callback_query.answer()
            if update.callback_query.message:
                await update.callback_query.message.answer(Messages.CALLBACK_FAILED)
    except TelegramAPIError as e:
        logger.error("Failed to send error message to user: %s", e)

    return True
