"""
Отправка сообщений через Bot API с повторами и классификацией ошибок
"""

import asyncio
import logging
from typing import Any, Protocol

from aiogram import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramNotFound,
    TelegramRetryAfter,
)

from egrz_bot.core.exceptions import DeliveryFailed, RecipientUnavailable
from egrz_bot.utils.retry import RETRYABLE_TELEGRAM_EXCEPTIONS


logger = logging.getLogger(__name__)

# Фрагменты описания TelegramBadRequest, означающие недоступность получателя
UNAVAILABLE_MARKERS = (
    "chat not found",
    "bot was blocked",
    "user is deactivated",
    "bot can't initiate conversation",
)


class Messenger(Protocol):
    """Интерфейс отправки, который нужен ядру рассылки"""

    async def send_text(self, chat_id: int, text: str, reply_markup: Any = None) -> None: ...


def is_recipient_unavailable(error: TelegramAPIError) -> bool:
    """Ошибка означает, что получатель недоступен (повтор бессмыслен)"""
    if isinstance(error, (TelegramForbiddenError, TelegramNotFound)):
        return True
    if isinstance(error, TelegramBadRequest):
        description = str(error).lower()
        return any(marker in description for marker in UNAVAILABLE_MARKERS)
    return False


class MessagingGateway:
    """
    Обёртка над Bot.send_message.

    Уведомления отправляются без parse_mode: тексты от LLM и из ЕГРЗ
    содержат кавычки и угловые скобки, которые ломают HTML-разметку.
    """

    def __init__(
        self,
        bot: Bot,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
    ):
        self.bot = bot
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay

    async def send_text(self, chat_id: int, text: str, reply_markup: Any = None) -> None:
        """
        Отправка текста

        Raises:
            RecipientUnavailable: Бот заблокирован, чат не найден
            DeliveryFailed: Временная ошибка не ушла после всех попыток
        """
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.bot.send_message(
                    chat_id, text, reply_markup=reply_markup, parse_mode=None
                )
                return
            except TelegramRetryAfter as e:
                wait_time = min(e.retry_after, self.max_delay)
                logger.warning(
                    "send_text(%s): Flood control exceeded (429). Retry after %s seconds. "
                    "Attempt %d/%d",
                    chat_id,
                    e.retry_after,
                    attempt,
                    self.max_attempts,
                )
                last_error = e
            except RETRYABLE_TELEGRAM_EXCEPTIONS as e:
                wait_time = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
                logger.warning(
                    "send_text(%s): %s occurred. Attempt %d/%d. Error: %s",
                    chat_id,
                    type(e).__name__,
                    attempt,
                    self.max_attempts,
                    e,
                )
                last_error = e
            except TelegramAPIError as e:
                if is_recipient_unavailable(e):
                    raise RecipientUnavailable(chat_id, str(e)) from e
                raise DeliveryFailed(chat_id, str(e)) from e

            if attempt < self.max_attempts:
                await asyncio.sleep(wait_time)

        raise DeliveryFailed(chat_id, str(last_error))
