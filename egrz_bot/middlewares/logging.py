"""
Middleware для логирования входящих событий и времени обработки
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from egrz_bot.utils.helpers import truncate_text


logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseMiddleware):
    """
    Логирует входящие сообщения и callback queries (только Telegram ID,
    username в логи не пишется) и медленные обработчики.
    """

    def __init__(self, log_level: int = logging.INFO, slow_threshold: float = 1.0):
        super().__init__()
        self.log_level = log_level
        self.slow_threshold = slow_threshold

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        if not isinstance(event, (Message, CallbackQuery)):
            return await handler(event, data)

        user_info = str(event.from_user.id) if event.from_user else "unknown"

        if isinstance(event, Message):
            text_preview = truncate_text(event.text, 50) if event.text else "[non-text]"
            logger.log(self.log_level, f"[MSG] Message from {user_info}: {text_preview}")
        else:
            callback_data = event.data[:100] if event.data else "[no data]"
            logger.log(self.log_level, f"[CALLBACK] Callback from {user_info}: {callback_data}")

        start_time = time.monotonic()
        try:
            result = await handler(event, data)
        except Exception as e:
            duration = time.monotonic() - start_time
            logger.error(f"[ERROR] After {duration:.2f}s for {user_info}: {type(e).__name__}: {e}")
            # Дальше - в global error handler
            raise

        duration = time.monotonic() - start_time
        if duration > self.slow_threshold:
            logger.warning(f"[SLOW] Handler processed in {duration:.2f}s by {user_info}")
        else:
            logger.debug(f"[OK] Processed in {duration:.3f}s")
        return result
