"""
Декораторы для обработки ошибок в обработчиках
"""

import functools
import logging
from collections.abc import Callable

from aiogram.exceptions import TelegramAPIError, TelegramNetworkError
from aiogram.types import CallbackQuery, Message

from egrz_bot.core.config import Messages
from egrz_bot.core.constants import AccessTier
from egrz_bot.keyboards.reply import get_main_menu_keyboard


logger = logging.getLogger(__name__)


def handle_errors(func: Callable) -> Callable:
    """
    Декоратор для обработки ошибок в обработчиках

    Пишет исключение в лог и отвечает пользователю общим сообщением
    об ошибке с клавиатурой его уровня доступа.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            logger.exception("Error in %s: %s", func.__name__, e)

            # Сообщение об ошибке по сети всё равно не дойдёт
            if isinstance(e, TelegramNetworkError):
                return None

            event = next((a for a in args if isinstance(a, Message | CallbackQuery)), None)
            keyboard = get_main_menu_keyboard(kwargs.get("access_tier", AccessTier.NONE))
            try:
                if isinstance(event, Message):
                    await event.answer(Messages.INTERNAL_ERROR, reply_markup=keyboard)
                elif isinstance(event, CallbackQuery):
                    await event.answer()
                    if event.message:
                        await event.message.answer(Messages.CALLBACK_FAILED, reply_markup=keyboard)
            except TelegramAPIError as send_error:
                logger.error(f"Failed to send error message: {send_error}")
            return None

    return wrapper
