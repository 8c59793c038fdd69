"""
Middleware определения уровня доступа и гейткипер
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from egrz_bot.core.config import Messages
from egrz_bot.core.constants import AccessTier
from egrz_bot.keyboards.reply import get_guest_keyboard
from egrz_bot.services.user_service import UserService


logger = logging.getLogger(__name__)


def is_start_command(event: TelegramObject) -> bool:
    return isinstance(event, Message) and (event.text or "").strip().startswith("/start")


class AccessCheckMiddleware(BaseMiddleware):
    """
    Кладёт access_tier в data и не пускает к обработчикам тех, у кого нет доступа

    /start пропускается всегда: через него происходит активация.
    """

    def __init__(self, user_service: UserService):
        super().__init__()
        self.user_service = user_service

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        user = getattr(event, "from_user", None)
        if user is None:
            return await handler(event, data)

        tier = await self.user_service.get_access_tier(user.id, user.username)
        data["access_tier"] = tier

        if tier.can_use_bot or is_start_command(event):
            return await handler(event, data)

        logger.info("Access denied for user %s (tier=%s)", user.id, tier.name)
        if isinstance(event, Message):
            text = Messages.PRESS_START if tier is AccessTier.REGISTERED else Messages.NO_ACCESS
            await event.answer(text, reply_markup=get_guest_keyboard())
        elif isinstance(event, CallbackQuery):
            await event.answer("У вас нет доступа.", show_alert=True)
        return None
