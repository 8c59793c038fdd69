"""
Кеш готовых уведомлений по номеру заключения

Экономит повторные обращения к LLM: одна запись ЕГРЗ обычно уходит
нескольким подписчикам и встречается в каждом прогоне за день.
"""

import logging
from collections.abc import Awaitable, Callable

from egrz_bot.database import ORMDatabase
from egrz_bot.repositories import LeadCacheRepository
from egrz_bot.services.enrichment.validation import is_quality_notification


logger = logging.getLogger(__name__)


class LeadCache:
    """
    get_or_compute поверх таблицы processed_leads.

    В кеш попадают только качественные тексты (см. is_quality_notification).
    Резервный шаблон не кешируется: при следующем появлении записи
    обогащение будет выполнено заново.
    """

    def __init__(
        self,
        db: ORMDatabase,
        validator: Callable[[str], bool] = is_quality_notification,
    ):
        self.db = db
        self.validator = validator

    async def get(self, conclusion_number: str) -> str | None:
        async with self.db.get_session() as session:
            return await LeadCacheRepository(session).get(conclusion_number)

    async def get_or_compute(
        self,
        conclusion_number: str,
        compute_fn: Callable[[], Awaitable[str | None]],
    ) -> str | None:
        """
        Текст уведомления из кеша или результат compute_fn

        Returns:
            Сохранённый текст (при гонке - текст первой записи), некешируемый
            результат compute_fn или None
        """
        cached = await self.get(conclusion_number)
        if cached is not None:
            logger.info(f"[CACHE] Запись \"{conclusion_number}\" найдена в кеше")
            return cached

        logger.info(f"[CACHE] Запись \"{conclusion_number}\" не найдена в кеше, запуск обработки")
        text = await compute_fn()
        if not text or not self.validator(text):
            logger.info(f"[CACHE] Результат для \"{conclusion_number}\" не кешируется (резервный)")
            return text

        async with self.db.get_session() as session:
            retained = await LeadCacheRepository(session).insert_if_absent(conclusion_number, text)
        logger.info(f"[CACHE] Результат для \"{conclusion_number}\" сохранён в кеш")
        return retained
