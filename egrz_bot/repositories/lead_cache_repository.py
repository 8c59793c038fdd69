"""
Lead Cache Repository

Хранилище готовых уведомлений по номеру заключения (таблица processed_leads).
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from egrz_bot.database.orm_models import ProcessedLead


logger = logging.getLogger(__name__)


class LeadCacheRepository:
    """Репозиторий кеша уведомлений. Запись по ключу неизменяема."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, conclusion_number: str) -> str | None:
        """Текст уведомления из кеша или None"""
        result = await self.session.execute(
            select(ProcessedLead.processed_message).where(
                ProcessedLead.conclusion_number == conclusion_number
            )
        )
        return result.scalar_one_or_none()

    async def insert_if_absent(self, conclusion_number: str, message: str) -> str:
        """
        Сохранение уведомления, если ключа ещё нет.

        Побеждает первая запись: при конфликте уникального ключа
        возвращается уже сохранённый текст.

        Returns:
            Текст, который хранится в кеше для этого ключа
        """
        self.session.add(
            ProcessedLead(conclusion_number=conclusion_number, processed_message=message)
        )
        try:
            await self.session.commit()
            return message
        except IntegrityError:
            await self.session.rollback()
            logger.debug(f"[CACHE] Запись {conclusion_number} уже сохранена параллельно")
            retained = await self.get(conclusion_number)
            return retained if retained is not None else message

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(ProcessedLead.id)))
        return int(result.scalar_one())
