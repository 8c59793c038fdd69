"""
Обработка одного региона: выгрузка -> отбор -> обогащение -> рассылка

Используется плановым прогоном (все подписчики региона) и немедленным
поиском после добавления региона (один пользователь).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import partial

from egrz_bot.core.exceptions import (
    DeliveryFailed,
    ParseError,
    RecipientUnavailable,
    TransientFetchError,
)
from egrz_bot.schemas.record import RegistryRecord
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.services.delivery_tracker import DeliveryTracker
from egrz_bot.services.enrichment.pipeline import EnrichmentPipeline
from egrz_bot.services.enrichment.prompts import region_name
from egrz_bot.services.lead_cache import LeadCache
from egrz_bot.services.messaging import Messenger
from egrz_bot.services.registry_client import RegistryClient


logger = logging.getLogger(__name__)

IMMEDIATE_FAILED = (
    "❌ При поиске произошла ошибка. Попробуйте добавить регион еще раз "
    "или обратитесь к администратору."
)


@dataclass
class RegionStats:
    """Статистика обработки региона за прогон"""

    region: str
    seen: int = 0  # строк в выгрузке
    processed: int = 0  # записей с готовым текстом, ушедших в рассылку
    irrelevant: int = 0  # застройщик "не требуется"
    errored: int = 0  # ошибки на уровне записи
    already_delivered: int = 0  # записи, которые все подписчики уже получили
    sent: int = 0
    failed_sends: int = 0
    fetch_error: str | None = None

    @property
    def fetch_failed(self) -> bool:
        return self.fetch_error is not None

    def to_dict(self) -> dict:
        return {
            "region": self.region,
            "seen": self.seen,
            "processed": self.processed,
            "irrelevant": self.irrelevant,
            "errored": self.errored,
            "already_delivered": self.already_delivered,
            "sent": self.sent,
            "failed_sends": self.failed_sends,
            "fetch_error": self.fetch_error,
        }


@dataclass
class RunStats:
    """Статистика планового прогона"""

    day: date
    started_at: datetime
    finished_at: datetime | None = None
    regions: list[RegionStats] = field(default_factory=list)
    aborted: str | None = None

    @property
    def errored_regions(self) -> int:
        return sum(1 for r in self.regions if r.fetch_failed)

    def total(self, attr: str) -> int:
        return sum(getattr(r, attr) for r in self.regions)

    def to_dict(self) -> dict:
        return {
            "day": self.day.isoformat(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "aborted": self.aborted,
            "errored_regions": self.errored_regions,
            "totals": {
                attr: self.total(attr)
                for attr in ("seen", "processed", "irrelevant", "errored", "sent", "failed_sends")
            },
            "regions": [r.to_dict() for r in self.regions],
        }


def build_immediate_summary(region: RegionLabel | str, stats: RegionStats) -> str:
    """Итоговое сообщение пользователю после немедленного поиска"""
    if stats.fetch_failed:
        return IMMEDIATE_FAILED
    if stats.seen == 0:
        return f'По региону "{region_name(region)}" за сегодня пока нет новых данных.'

    if stats.sent > 0:
        summary = f"✅ Первоначальный поиск завершен. Отправлено новых записей: {stats.sent}."
        if stats.irrelevant > 0:
            summary += f"\nПропущено нерелевантных: {stats.irrelevant}."
        return summary

    if stats.failed_sends > 0 or stats.errored > 0:
        return (
            "⚠️ Первоначальный поиск завершен, но часть записей не удалось обработать. "
            "Они придут со следующей плановой проверкой."
        )
    if stats.irrelevant > 0:
        return (
            "✅ Первоначальный поиск завершен. Новых записей для отправки нет, т.к. найденные "
            f"{stats.irrelevant} шт. были нерелевантны (например, без указания застройщика)."
        )
    return (
        "✅ Первоначальный поиск завершен. Все найденные записи уже были отправлены вам ранее. "
        "Новых лидов нет."
    )


class LeadProcessor:
    """Обработка записей одного региона для заданного множества подписчиков"""

    def __init__(
        self,
        registry: RegistryClient,
        cache: LeadCache,
        pipeline: EnrichmentPipeline,
        tracker: DeliveryTracker,
        messenger: Messenger,
    ):
        self.registry = registry
        self.cache = cache
        self.pipeline = pipeline
        self.tracker = tracker
        self.messenger = messenger

    async def process_region(
        self,
        region: RegionLabel,
        subscribers: set[int],
        day: date,
        tag: str = "[SCHEDULER]",
    ) -> RegionStats:
        """
        Выгрузка региона за день и рассылка новых записей

        Ошибка выгрузки не пробрасывается: регион помечается как ошибочный,
        вызывающий переходит к следующему.
        """
        stats = RegionStats(region=str(region))

        try:
            records = await self.registry.fetch(region, day)
        except (TransientFetchError, ParseError) as e:
            stats.fetch_error = f"{type(e).__name__}: {e}"
            logger.error(f"{tag} Ошибка при получении данных для региона \"{region}\": {e}")
            return stats

        stats.seen = len(records)
        if not records:
            logger.info(f"{tag} Для региона \"{region}\" нет новых данных")
            return stats

        relevant: dict[str, RegistryRecord] = {}
        for record in records:
            if self.pipeline.is_irrelevant(record):
                stats.irrelevant += 1
                logger.info(
                    f"{tag} Запись \"{record.conclusion_number}\" пропущена "
                    f"(застройщик \"Не требуется\")"
                )
                continue
            relevant.setdefault(record.conclusion_number, record)

        if not relevant:
            return stats

        pending = await self.tracker.pending_subscribers(subscribers, relevant.keys())

        for number, record in relevant.items():
            targets = pending.get(number, set())
            if not targets:
                stats.already_delivered += 1
                continue
            await self._process_record(region, record, targets, stats, tag)

        logger.info(
            f"{tag} Регион \"{region}\": строк {stats.seen}, обработано {stats.processed}, "
            f"нерелевантных {stats.irrelevant}, ошибок {stats.errored}, "
            f"отправлено {stats.sent}, не доставлено {stats.failed_sends}"
        )
        return stats

    async def _process_record(
        self,
        region: RegionLabel,
        record: RegistryRecord,
        targets: set[int],
        stats: RegionStats,
        tag: str,
    ) -> None:
        number = record.conclusion_number
        try:
            text = await self.cache.get_or_compute(
                number, partial(self.pipeline.enrich, record, region)
            )
        except Exception as e:
            stats.errored += 1
            logger.exception(f"{tag} Ошибка обработки записи \"{number}\" ({region}): {e}")
            return

        if not text:
            stats.errored += 1
            logger.error(f"{tag} Пустой текст уведомления для записи \"{number}\" ({region})")
            return

        stats.processed += 1
        recipients = sorted(targets)
        results = await asyncio.gather(
            *(self.messenger.send_text(user_id, text) for user_id in recipients),
            return_exceptions=True,
        )

        # Факты пишутся последовательно и только для успешных отправок
        for user_id, result in zip(recipients, results):
            if isinstance(result, BaseException):
                stats.failed_sends += 1
                self._log_send_failure(tag, user_id, number, result)
                continue
            try:
                await self.tracker.record(user_id, number)
            except Exception as e:
                logger.exception(
                    f"{tag} Не удалось записать факт доставки \"{number}\" пользователю {user_id}: {e}"
                )
            stats.sent += 1
            logger.info(f"{tag} Сообщение по \"{number}\" отправлено пользователю {user_id}")

    @staticmethod
    def _log_send_failure(tag: str, user_id: int, number: str, error: BaseException) -> None:
        if isinstance(error, RecipientUnavailable):
            logger.warning(
                f"{tag} Не удалось отправить \"{number}\" пользователю {user_id} "
                f"(вероятно, бот заблокирован): {error.reason}"
            )
        elif isinstance(error, DeliveryFailed):
            logger.error(f"{tag} Ошибка отправки \"{number}\" пользователю {user_id}: {error.reason}")
        else:
            logger.error(
                f"{tag} Неожиданная ошибка отправки \"{number}\" пользователю {user_id}: {error!r}"
            )
