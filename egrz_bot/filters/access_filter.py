"""
Фильтры по уровню доступа пользователя
"""

import logging

from aiogram.filters import BaseFilter
from aiogram.types import CallbackQuery, Message

from egrz_bot.core.constants import AccessTier


logger = logging.getLogger(__name__)


class AccessTierFilter(BaseFilter):
    """Пропускает события пользователей с уровнем доступа не ниже заданного"""

    def __init__(self, min_tier: AccessTier):
        self.min_tier = min_tier

    async def __call__(self, _event: Message | CallbackQuery, **kwargs) -> bool:
        """
        Args:
            _event: Событие (не используется, но требуется для совместимости с aiogram)
            **kwargs: Данные, включая access_tier из AccessCheckMiddleware
        """
        tier = kwargs.get("access_tier", AccessTier.NONE)
        return tier >= self.min_tier


class IsAdmin(AccessTierFilter):
    """Фильтр для проверки роли администратора"""

    def __init__(self):
        super().__init__(AccessTier.ADMIN)
