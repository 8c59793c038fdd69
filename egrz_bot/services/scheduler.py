"""
Планировщик парсинга ЕГРЗ
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from egrz_bot.core.config import Config
from egrz_bot.core.exceptions import StoreUnavailable
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.services.lead_processor import (
    IMMEDIATE_FAILED,
    LeadProcessor,
    RunStats,
    build_immediate_summary,
)
from egrz_bot.services.subscription_aggregator import SubscriptionAggregator
from egrz_bot.utils.helpers import (
    get_now,
    local_calendar_date,
    parse_iso_date,
    timezone_from_offset,
)


logger = logging.getLogger(__name__)

PARSE_JOB_ID = "parse_registry"


def default_today() -> date:
    """Дата выборки: EGRZ_FIXED_DATE или сегодня по часовому поясу TIMEZONE_OFFSET_HOURS"""
    fixed = parse_iso_date(Config.EGRZ_FIXED_DATE)
    if fixed is not None:
        return fixed
    return local_calendar_date(timezone_from_offset(Config.TIMEZONE_OFFSET_HOURS))


class RunLock:
    """
    Блокировка планового прогона: Idle -> Running -> Idle

    Захват возвращает токен поколения. Если прогон длится дольше max_execution,
    блокировка принудительно снимается, а release() с устаревшим токеном
    брошенного прогона уже ничего не меняет.
    """

    def __init__(self, max_execution: timedelta, clock: Callable[[], datetime] = get_now):
        self.max_execution = max_execution
        self.clock = clock
        self._generation = 0
        self._token: int | None = None
        self._started_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._token is not None

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    def try_acquire(self) -> int | None:
        """
        Захват блокировки

        Returns:
            Токен прогона или None, если идёт другой (не зависший) прогон
        """
        now = self.clock()
        if self._token is not None:
            elapsed = now - self._started_at
            if elapsed < self.max_execution:
                return None
            logger.critical(
                f"[SCHEDULER] Прогон #{self._token} выполняется {elapsed}, "
                f"что больше {self.max_execution}. Блокировка снята принудительно"
            )

        self._generation += 1
        self._token = self._generation
        self._started_at = now
        return self._token

    def release(self, token: int) -> bool:
        """Снятие блокировки. False - токен устарел (блокировка уже у другого прогона)."""
        if self._token != token:
            return False
        self._token = None
        self._started_at = None
        return True


class TaskScheduler:
    """Периодический парсинг ЕГРЗ и немедленный поиск по запросу"""

    def __init__(
        self,
        aggregator: SubscriptionAggregator,
        processor: LeadProcessor,
        today: Callable[[], date] = default_today,
        clock: Callable[[], datetime] = get_now,
        interval_minutes: int | None = None,
        max_execution_minutes: int | None = None,
    ):
        self.aggregator = aggregator
        self.processor = processor
        self.today = today
        self.clock = clock
        self.interval_minutes = interval_minutes or Config.PARSE_INTERVAL_MINUTES
        max_execution = timedelta(minutes=max_execution_minutes or Config.MAX_EXECUTION_MINUTES)
        self.lock = RunLock(max_execution, clock)
        self.scheduler = AsyncIOScheduler()
        self.last_run: RunStats | None = None

    async def start(self):
        """Запуск планировщика"""
        # Пропуски пересекающихся запусков решает RunLock, а не APScheduler
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=PARSE_JOB_ID,
            name="Парсинг ЕГРЗ",
            replace_existing=True,
            max_instances=2,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Планировщик задач запущен (интервал {self.interval_minutes} мин)")

    async def stop(self):
        """Остановка планировщика"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Планировщик задач остановлен")

    async def run_once(self) -> RunStats | None:
        """
        Один плановый прогон по всем регионам

        Returns:
            Статистика прогона или None, если запуск пропущен из-за блокировки
        """
        token = self.lock.try_acquire()
        if token is None:
            logger.info("[SCHEDULER] Пропуск запуска: предыдущая задача еще не завершена")
            return None

        stats = RunStats(day=self.today(), started_at=self.clock())
        logger.info(f"[SCHEDULER] Запуск задачи парсинга #{token} за {stats.day.isoformat()}")

        try:
            region_map = await self.aggregator.collect()
            if not region_map:
                logger.info("[SCHEDULER] Нет активных подписок на регионы. Задача завершена")
                return stats

            # Регионы обрабатываются последовательно, чтобы не перегружать API ЕГРЗ
            for region in sorted(region_map, key=lambda r: r.label):
                region_stats = await self.processor.process_region(
                    region, region_map[region], stats.day
                )
                stats.regions.append(region_stats)
            return stats

        except StoreUnavailable as e:
            stats.aborted = str(e)
            logger.error(f"[SCHEDULER] Прогон прерван, хранилище недоступно: {e}")
            return stats
        except Exception as e:
            stats.aborted = f"{type(e).__name__}: {e}"
            logger.exception(f"[SCHEDULER] Критическая ошибка в задаче парсинга: {e}")
            return stats
        finally:
            stats.finished_at = self.clock()
            if self.lock.release(token):
                self.last_run = stats
            else:
                # Статистика брошенного прогона не затирает статистику более нового
                logger.warning(
                    f"[SCHEDULER] Прогон #{token} завершился после принудительного снятия блокировки"
                )
            self._log_summary(stats)

    async def trigger_immediate_parse(self, region: RegionLabel, user_id: int) -> str:
        """
        Поиск по одному региону для одного пользователя вне расписания

        Не ждёт RunLock. Всегда возвращает итоговый текст для пользователя.
        """
        logger.info(
            f"[IMMEDIATE_PARSE] Запуск немедленного парсинга для пользователя {user_id} "
            f"по региону \"{region}\""
        )
        try:
            stats = await self.processor.process_region(
                region, {user_id}, self.today(), tag="[IMMEDIATE_PARSE]"
            )
        except Exception as e:
            logger.exception(
                f"[IMMEDIATE_PARSE] Критическая ошибка при немедленном парсинге для {user_id}: {e}"
            )
            return IMMEDIATE_FAILED
        return build_immediate_summary(region, stats)

    def status(self) -> dict:
        """Состояние планировщика для health-check"""
        started_at = self.lock.started_at
        return {
            "running": self.lock.is_running,
            "started_at": started_at.isoformat() if started_at else None,
            "interval_minutes": self.interval_minutes,
            "last_run": self.last_run.to_dict() if self.last_run else None,
        }

    @staticmethod
    def _log_summary(stats: RunStats) -> None:
        logger.info(
            f"[SCHEDULER] Задача парсинга завершена. Регионов: {len(stats.regions)}, "
            f"с ошибкой выгрузки: {stats.errored_regions}, строк: {stats.total('seen')}, "
            f"обработано: {stats.total('processed')}, нерелевантных: {stats.total('irrelevant')}, "
            f"ошибок: {stats.total('errored')}, отправлено: {stats.total('sent')}"
        )
