"""
Учёт фактов доставки (пользователь, запись)

Наличие факта - единственный признак того, что запись уже отправлена.
"""

import logging
from collections.abc import Iterable

from egrz_bot.database import ORMDatabase
from egrz_bot.repositories import DeliveryRepository


logger = logging.getLogger(__name__)


class DeliveryTracker:
    """Проверка и запись фактов доставки"""

    def __init__(self, db: ORMDatabase):
        self.db = db

    async def already_sent(self, user_id: int, conclusion_number: str) -> bool:
        async with self.db.get_session() as session:
            return await DeliveryRepository(session).exists(user_id, conclusion_number)

    async def record(self, user_id: int, conclusion_number: str) -> None:
        """Запись факта. Повторная запись той же пары не считается ошибкой."""
        async with self.db.get_session() as session:
            created = await DeliveryRepository(session).add(user_id, conclusion_number)
        if not created:
            logger.warning(
                f"[DELIVERY] Факт доставки \"{conclusion_number}\" пользователю {user_id} "
                f"уже был записан"
            )

    async def already_sent_bulk(
        self, user_ids: Iterable[int], conclusion_numbers: Iterable[str]
    ) -> set[tuple[int, str]]:
        """Уже отправленные пары из декартова произведения - одним запросом"""
        async with self.db.get_session() as session:
            return await DeliveryRepository(session).find_sent_pairs(user_ids, conclusion_numbers)

    async def pending_subscribers(
        self, subscribers: Iterable[int], conclusion_numbers: Iterable[str]
    ) -> dict[str, set[int]]:
        """
        Для каждой записи - подписчики, которым она ещё не отправлялась

        Общая проверка для планового прогона и немедленного поиска.
        """
        subscribers = set(subscribers)
        numbers = set(conclusion_numbers)
        sent = await self.already_sent_bulk(subscribers, numbers)
        return {
            number: {user_id for user_id in subscribers if (user_id, number) not in sent}
            for number in numbers
        }
