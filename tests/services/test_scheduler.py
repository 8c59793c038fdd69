"""
Тесты планировщика: плановый прогон, блокировка, немедленный поиск, health-check
"""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from aiohttp import test_utils

from conftest import TEST_DAY, FakeLLM, FakeMessenger, FakeRegistry, make_record
from egrz_bot.core.exceptions import StoreUnavailable, TransientFetchError
from egrz_bot.repositories import SubscriptionRepository
from egrz_bot.services.delivery_tracker import DeliveryTracker
from egrz_bot.services.enrichment import EnrichmentPipeline
from egrz_bot.services.health import create_health_app
from egrz_bot.services.lead_cache import LeadCache
from egrz_bot.services.lead_processor import IMMEDIATE_FAILED, LeadProcessor, RegionStats, RunStats
from egrz_bot.services.scheduler import TaskScheduler
from egrz_bot.services.subscription_aggregator import SubscriptionAggregator


def make_scheduler(db, registry: FakeRegistry, messenger: FakeMessenger) -> TaskScheduler:
    processor = LeadProcessor(
        registry=registry,
        cache=LeadCache(db),
        pipeline=EnrichmentPipeline(FakeLLM(), max_attempts=3, retry_delay=0),
        tracker=DeliveryTracker(db),
        messenger=messenger,
    )
    return TaskScheduler(
        SubscriptionAggregator(db),
        processor,
        today=lambda: TEST_DAY,
        interval_minutes=15,
        max_execution_minutes=30,
    )


async def subscribe(db, user_id: int, *regions) -> None:
    async with db.get_session() as session:
        repo = SubscriptionRepository(session)
        for region in regions:
            await repo.add_region(user_id, region)


class TestRunOnce:
    """Тесты планового прогона"""

    @pytest.mark.asyncio
    async def test_run_over_all_regions(self, db, spb, msk, fake_messenger):
        await subscribe(db, 1, spb, msk)
        await subscribe(db, 2, spb)
        registry = FakeRegistry({"78": [make_record("N-78")], "77": [make_record("N-77")]})
        scheduler = make_scheduler(db, registry, fake_messenger)

        stats = await scheduler.run_once()

        assert stats is not None
        assert stats.day == TEST_DAY
        assert len(stats.regions) == 2
        assert stats.total("sent") == 3
        assert {code for code, _ in registry.calls} == {"77", "78"}
        assert not scheduler.lock.is_running
        assert scheduler.last_run is stats

    @pytest.mark.asyncio
    async def test_failed_region_does_not_stop_run(self, db, spb, msk, fake_messenger):
        await subscribe(db, 1, spb, msk)
        registry = FakeRegistry({"78": TransientFetchError("HTTP 503"), "77": [make_record("N-77")]})
        scheduler = make_scheduler(db, registry, fake_messenger)

        stats = await scheduler.run_once()

        assert stats.errored_regions == 1
        assert stats.total("sent") == 1
        assert fake_messenger.sent_to(1) != []

    @pytest.mark.asyncio
    async def test_overlapping_run_is_skipped(self, db, spb, fake_messenger):
        await subscribe(db, 1, spb)
        registry = FakeRegistry({"78": [make_record("N-78")]})
        scheduler = make_scheduler(db, registry, fake_messenger)

        token = scheduler.lock.try_acquire()
        assert await scheduler.run_once() is None
        assert registry.calls == []

        scheduler.lock.release(token)
        assert await scheduler.run_once() is not None

    @pytest.mark.asyncio
    async def test_abandoned_run_keeps_newer_stats(self, db, spb, fake_messenger):
        """Прогон, чья блокировка снята принудительно, не затирает last_run нового прогона"""
        await subscribe(db, 1, spb)
        scheduler = make_scheduler(db, FakeRegistry(), fake_messenger)
        newer = RunStats(day=TEST_DAY, started_at=datetime(2025, 7, 1, 12, 0))

        async def slow_region(region, subscribers, day):
            # Пока прогон идёт, блокировку забирает следующий запуск
            scheduler.lock.max_execution = timedelta(0)
            assert scheduler.lock.try_acquire() is not None
            scheduler.last_run = newer
            return RegionStats(region=region.label)

        scheduler.processor.process_region = AsyncMock(side_effect=slow_region)

        stats = await scheduler.run_once()

        assert stats is not None
        assert scheduler.last_run is newer
        assert scheduler.lock.is_running

    @pytest.mark.asyncio
    async def test_no_subscriptions(self, db, fake_messenger):
        registry = FakeRegistry()
        scheduler = make_scheduler(db, registry, fake_messenger)

        stats = await scheduler.run_once()

        assert stats.regions == []
        assert registry.calls == []

    @pytest.mark.asyncio
    async def test_store_unavailable_aborts_run(self, db, fake_messenger):
        scheduler = make_scheduler(db, FakeRegistry(), fake_messenger)
        scheduler.aggregator.collect = AsyncMock(side_effect=StoreUnavailable("database is locked"))

        stats = await scheduler.run_once()

        assert stats.aborted == "database is locked"
        assert not scheduler.lock.is_running

    @pytest.mark.asyncio
    async def test_status(self, db, fake_messenger):
        scheduler = make_scheduler(db, FakeRegistry(), fake_messenger)
        await scheduler.run_once()

        status = scheduler.status()

        assert status["running"] is False
        assert status["interval_minutes"] == 15
        assert status["last_run"]["day"] == TEST_DAY.isoformat()


class TestImmediateParse:
    """Тесты немедленного поиска после добавления региона"""

    @pytest.mark.asyncio
    async def test_sends_only_to_requesting_user(self, db, spb, fake_messenger):
        await subscribe(db, 2, spb)
        registry = FakeRegistry({"78": [make_record("N-1"), make_record("N-2")]})
        scheduler = make_scheduler(db, registry, fake_messenger)

        summary = await scheduler.trigger_immediate_parse(spb, 1)

        assert "Отправлено новых записей: 2." in summary
        assert len(fake_messenger.sent_to(1)) == 2
        assert fake_messenger.sent_to(2) == []

    @pytest.mark.asyncio
    async def test_already_sent_by_scheduler(self, db, spb, fake_messenger):
        """Немедленный поиск не дублирует то, что уже разослал планировщик"""
        await subscribe(db, 1, spb)
        registry = FakeRegistry({"78": [make_record("N-1")]})
        scheduler = make_scheduler(db, registry, fake_messenger)
        await scheduler.run_once()

        summary = await scheduler.trigger_immediate_parse(spb, 1)

        assert "уже были отправлены вам ранее" in summary
        assert len(fake_messenger.sent_to(1)) == 1

    @pytest.mark.asyncio
    async def test_fetch_error(self, db, spb, fake_messenger):
        registry = FakeRegistry({"78": TransientFetchError("timeout")})
        scheduler = make_scheduler(db, registry, fake_messenger)

        assert await scheduler.trigger_immediate_parse(spb, 1) == IMMEDIATE_FAILED

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_text(self, db, spb, fake_messenger):
        scheduler = make_scheduler(db, FakeRegistry(), fake_messenger)
        scheduler.processor.process_region = AsyncMock(side_effect=RuntimeError("boom"))

        assert await scheduler.trigger_immediate_parse(spb, 1) == IMMEDIATE_FAILED

    @pytest.mark.asyncio
    async def test_ignores_run_lock(self, db, spb, fake_messenger):
        registry = FakeRegistry({"78": [make_record("N-1")]})
        scheduler = make_scheduler(db, registry, fake_messenger)
        scheduler.lock.try_acquire()

        await scheduler.trigger_immediate_parse(spb, 1)

        assert len(fake_messenger.sent_to(1)) == 1


class TestHealthApp:
    """Тесты health-check сервера"""

    @pytest.mark.asyncio
    async def test_endpoints(self, db, fake_messenger):
        scheduler = make_scheduler(db, FakeRegistry(), fake_messenger)
        app = create_health_app(scheduler)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            root = await client.get("/")
            assert root.status == 200
            assert await root.text() == "Сервер работает"

            health = await client.get("/health")
            data = await health.json()
            assert data["status"] == "healthy"
            assert data["scheduler"]["running"] is False
