"""
Middleware для инжекции зависимостей (Dependency Injection)
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from egrz_bot.database import ORMDatabase
from egrz_bot.services.scheduler import TaskScheduler
from egrz_bot.services.subscription_service import SubscriptionService
from egrz_bot.services.user_service import UserService


logger = logging.getLogger(__name__)


class DependencyInjectionMiddleware(BaseMiddleware):
    """
    Middleware для инжекции БД и сервисов в handlers

    Handlers получают db, user_service, subscription_service и scheduler
    параметрами, без глобальных переменных.
    """

    def __init__(
        self,
        db: ORMDatabase,
        user_service: UserService,
        subscription_service: SubscriptionService,
        scheduler: TaskScheduler,
    ):
        super().__init__()
        self.db = db
        self.user_service = user_service
        self.subscription_service = subscription_service
        self.scheduler = scheduler

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        data["db"] = self.db
        data["user_service"] = self.user_service
        data["subscription_service"] = self.subscription_service
        data["scheduler"] = self.scheduler
        return await handler(event, data)
