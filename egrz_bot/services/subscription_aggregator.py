"""
Сбор карты регион -> подписчики

Карта строится заново на каждый прогон и нигде не сохраняется.
"""

import logging

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from egrz_bot.core.exceptions import ConfigCorrupt, StoreUnavailable
from egrz_bot.database import ORMDatabase
from egrz_bot.database.orm_models import Subscription
from egrz_bot.repositories import SubscriptionRepository
from egrz_bot.schemas.subscription import RegionLabel, UserConfig


logger = logging.getLogger(__name__)

RegionSubscriberMap = dict[RegionLabel, set[int]]


def parse_subscription(subscription: Subscription) -> UserConfig:
    """
    Разбор конфигурации одного пользователя

    Raises:
        ConfigCorrupt: JSON повреждён или регион не в формате "Название - Код"
    """
    try:
        return UserConfig.from_json(subscription.config_data)
    except (ValidationError, ValueError) as e:
        raise ConfigCorrupt(subscription.user_id, str(e)) from e


def invert_subscriptions(configs: dict[int, UserConfig]) -> RegionSubscriberMap:
    """
    Инверсия пользователь -> регионы в регион -> пользователи

    Дубли регионов у одного пользователя схлопываются (set), пользователи
    без регионов в карту не попадают.
    """
    region_map: RegionSubscriberMap = {}
    for user_id, config in configs.items():
        for region in config.regions:
            region_map.setdefault(region, set()).add(user_id)
    return region_map


class SubscriptionAggregator:
    """Построение RegionSubscriberMap по всем сохранённым подпискам"""

    def __init__(self, db: ORMDatabase):
        self.db = db

    async def collect(self) -> RegionSubscriberMap:
        """
        Карта регион -> множество Telegram ID подписчиков

        Повреждённая конфигурация одного пользователя пишется в лог и пропускается.

        Raises:
            StoreUnavailable: Не удалось прочитать таблицу подписок
        """
        try:
            async with self.db.get_session() as session:
                subscriptions = await SubscriptionRepository(session).list_all()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Не удалось прочитать подписки: {e}") from e

        configs: dict[int, UserConfig] = {}
        for subscription in subscriptions:
            try:
                configs[subscription.user_id] = parse_subscription(subscription)
            except ConfigCorrupt as e:
                logger.error(
                    f"[SCHEDULER] Ошибка парсинга конфигурации для пользователя {e.user_id}: "
                    f"{e.details}"
                )

        region_map = invert_subscriptions(configs)
        logger.info(f"[SCHEDULER] Обнаружено уникальных регионов для парсинга: {len(region_map)}")
        return region_map
