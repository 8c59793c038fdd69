"""
Сервис подписок для чат-интерфейса (добавление/удаление регионов)
"""

import logging

from egrz_bot.core.regions import normalize_region_code
from egrz_bot.database import ORMDatabase
from egrz_bot.repositories import SubscriptionRepository
from egrz_bot.schemas.subscription import RegionLabel


logger = logging.getLogger(__name__)


class SubscriptionService:
    """Операции над регионами одного пользователя"""

    def __init__(self, db: ORMDatabase):
        self.db = db

    async def get_regions(self, user_id: int) -> list[RegionLabel]:
        async with self.db.get_session() as session:
            config = await SubscriptionRepository(session).get_user_config(user_id)
        return config.regions

    async def add_region(self, user_id: int, raw_code: str) -> tuple[RegionLabel | None, bool]:
        """
        Добавление региона по введённому коду

        Returns:
            (регион или None, если код не найден в справочнике; добавлен ли он сейчас)
        """
        code = normalize_region_code(raw_code)
        if code is None:
            return None, False

        region = RegionLabel.from_code(code)
        async with self.db.get_session() as session:
            added = await SubscriptionRepository(session).add_region(user_id, region)
        return region, added

    async def remove_region(self, user_id: int, code: str) -> RegionLabel | None:
        """
        Удаление региона по коду

        Returns:
            Удалённый регион или None, если его не было в подписках
        """
        for region in await self.get_regions(user_id):
            if region.code == code:
                async with self.db.get_session() as session:
                    await SubscriptionRepository(session).remove_region(user_id, region)
                return region
        return None
