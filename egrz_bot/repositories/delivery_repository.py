"""
Delivery Repository

Факты отправки записей пользователям (таблица delivery_records).
"""

import logging
from collections.abc import Iterable

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from egrz_bot.database.orm_models import DeliveryRecord


logger = logging.getLogger(__name__)


class DeliveryRepository:
    """
    Репозиторий фактов доставки.

    Уникальность (user_id, conclusion_number) обеспечивается на уровне БД,
    поэтому повторная запись одной пары безопасна даже при гонке.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists(self, user_id: int, conclusion_number: str) -> bool:
        result = await self.session.execute(
            select(DeliveryRecord.id).where(
                and_(
                    DeliveryRecord.user_id == user_id,
                    DeliveryRecord.conclusion_number == conclusion_number,
                )
            )
        )
        return result.first() is not None

    async def add(self, user_id: int, conclusion_number: str) -> bool:
        """
        Запись факта доставки.

        Returns:
            True если запись создана, False если такая пара уже была
        """
        self.session.add(DeliveryRecord(user_id=user_id, conclusion_number=conclusion_number))
        try:
            await self.session.commit()
            return True
        except IntegrityError:
            await self.session.rollback()
            logger.debug(
                f"[DELIVERY] Пара ({user_id}, {conclusion_number}) уже записана, пропускаем"
            )
            return False

    async def find_sent_pairs(
        self, user_ids: Iterable[int], conclusion_numbers: Iterable[str]
    ) -> set[tuple[int, str]]:
        """
        Пары (user_id, conclusion_number) из декартова произведения,
        по которым уже есть факт доставки. Один запрос на всё множество.
        """
        user_ids = list(set(user_ids))
        conclusion_numbers = list(set(conclusion_numbers))
        if not user_ids or not conclusion_numbers:
            return set()

        result = await self.session.execute(
            select(DeliveryRecord.user_id, DeliveryRecord.conclusion_number).where(
                and_(
                    DeliveryRecord.user_id.in_(user_ids),
                    DeliveryRecord.conclusion_number.in_(conclusion_numbers),
                )
            )
        )
        return {(row.user_id, row.conclusion_number) for row in result.all()}
