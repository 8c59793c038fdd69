"""
Subscription Repository

Репозиторий подписок пользователей на регионы (таблица configurations).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from egrz_bot.database.orm_models import Subscription
from egrz_bot.schemas.subscription import RegionLabel, UserConfig


logger = logging.getLogger(__name__)


class SubscriptionRepository:
    """
    Репозиторий для управления подписками.

    Одна запись на пользователя (уникальный user_id). Записи не удаляются,
    при удалении последнего региона список просто становится пустым.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Инициализация репозитория.

        Args:
            session: Async SQLAlchemy сессия
        """
        self.session = session
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def list_all(self) -> list[Subscription]:
        """Все сохранённые конфигурации подписок"""
        result = await self.session.execute(select(Subscription).order_by(Subscription.id))
        return list(result.scalars().all())

    async def get(self, user_id: int) -> Subscription | None:
        result = await self.session.execute(
            select(Subscription).where(Subscription.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_config(self, user_id: int) -> UserConfig:
        """
        Конфигурация пользователя.

        Повреждённая конфигурация трактуется как пустая (пользователь
        просто добавит регионы заново), ошибка пишется в лог.
        """
        subscription = await self.get(user_id)
        if subscription is None:
            return UserConfig()
        try:
            return UserConfig.from_json(subscription.config_data)
        except ValueError as e:
            self.logger.warning(f"Повреждённая конфигурация пользователя {user_id}: {e}")
            return UserConfig()

    async def save_user_config(self, user_id: int, config: UserConfig) -> None:
        """Создание или обновление конфигурации (upsert по user_id)"""
        subscription = await self.get(user_id)
        if subscription is None:
            subscription = Subscription(user_id=user_id, config_data=config.to_json())
            self.session.add(subscription)
        else:
            subscription.config_data = config.to_json()
        await self.session.commit()

    async def add_region(self, user_id: int, region: RegionLabel) -> bool:
        """
        Добавление региона в подписки.

        Returns:
            False если регион уже был в списке
        """
        config = await self.get_user_config(user_id)
        if config.has_region(region):
            return False
        config.regions.append(region)
        await self.save_user_config(user_id, config)
        self.logger.info(f"Пользователь {user_id} подписан на регион {region}")
        return True

    async def remove_region(self, user_id: int, region: RegionLabel) -> bool:
        """
        Удаление региона из подписок.

        Returns:
            False если региона не было в списке
        """
        config = await self.get_user_config(user_id)
        if not config.has_region(region):
            return False
        config.regions = [r for r in config.regions if r != region]
        await self.save_user_config(user_id, config)
        self.logger.info(f"Пользователь {user_id} отписан от региона {region}")
        return True
