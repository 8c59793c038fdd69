"""
Тесты репозиториев на in-memory SQLite
"""
import pytest

from egrz_bot.database import ORMDatabase
from egrz_bot.repositories import (
    DeliveryRepository,
    LeadCacheRepository,
    SubscriptionRepository,
    UserRepository,
)
from egrz_bot.repositories.user_repository import normalize_username
from egrz_bot.schemas.subscription import RegionLabel


class TestUserRepository:
    """Тесты белого списка"""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("@ivan", "ivan"), (" ivan ", "ivan"), ("@", None), ("", None), (None, None)],
    )
    def test_normalize_username(self, raw, expected):
        assert normalize_username(raw) == expected

    @pytest.mark.asyncio
    async def test_add_and_activate(self, db: ORMDatabase):
        async with db.get_session() as session:
            repo = UserRepository(session)
            user, created = await repo.add_username("@ivan")
            assert created
            assert user.username == "ivan"
            assert not user.is_activated

            _, created_again = await repo.add_username("ivan")
            assert not created_again

            activated = await repo.activate("ivan", 555)
            assert activated is not None
            assert activated.user_id == 555

            # Повторная активация ничего не делает
            assert await repo.activate("ivan", 777) is None
            assert (await repo.get_by_user_id(555)).username == "ivan"

    @pytest.mark.asyncio
    async def test_add_empty_username(self, db: ORMDatabase):
        async with db.get_session() as session:
            with pytest.raises(ValueError):
                await UserRepository(session).add_username(" @ ")

    @pytest.mark.asyncio
    async def test_delete(self, db: ORMDatabase):
        async with db.get_session() as session:
            repo = UserRepository(session)
            user, _ = await repo.add_username("ivan")
            assert await repo.delete(user.id) is True
            assert await repo.delete(user.id) is False
            assert await repo.list_all() == []


class TestSubscriptionRepository:
    """Тесты подписок"""

    @pytest.mark.asyncio
    async def test_add_and_remove_region(self, db: ORMDatabase, spb: RegionLabel, msk: RegionLabel):
        async with db.get_session() as session:
            repo = SubscriptionRepository(session)
            assert await repo.add_region(1, spb) is True
            assert await repo.add_region(1, spb) is False
            assert await repo.add_region(1, msk) is True

            config = await repo.get_user_config(1)
            assert config.regions == [spb, msk]

            assert await repo.remove_region(1, spb) is True
            assert await repo.remove_region(1, spb) is False
            assert (await repo.get_user_config(1)).regions == [msk]

    @pytest.mark.asyncio
    async def test_corrupt_config_reads_as_empty(self, db: ORMDatabase):
        from egrz_bot.database.orm_models import Subscription

        async with db.get_session() as session:
            session.add(Subscription(user_id=1, config_data="{broken"))
            await session.commit()
            assert (await SubscriptionRepository(session).get_user_config(1)).regions == []


class TestLeadCacheRepository:
    """Тесты кеша уведомлений"""

    @pytest.mark.asyncio
    async def test_first_write_wins(self, db: ORMDatabase):
        async with db.get_session() as session:
            repo = LeadCacheRepository(session)
            assert await repo.get("N-1") is None
            assert await repo.insert_if_absent("N-1", "первый") == "первый"
            assert await repo.insert_if_absent("N-1", "второй") == "первый"
            assert await repo.get("N-1") == "первый"
            assert await repo.count() == 1


class TestDeliveryRepository:
    """Тесты фактов доставки"""

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, db: ORMDatabase):
        async with db.get_session() as session:
            repo = DeliveryRepository(session)
            assert await repo.add(1, "N-1") is True
            assert await repo.add(1, "N-1") is False
            assert await repo.exists(1, "N-1")
            assert not await repo.exists(2, "N-1")

    @pytest.mark.asyncio
    async def test_find_sent_pairs(self, db: ORMDatabase):
        async with db.get_session() as session:
            repo = DeliveryRepository(session)
            await repo.add(1, "N-1")
            await repo.add(2, "N-2")
            await repo.add(3, "N-1")

            pairs = await repo.find_sent_pairs([1, 2], ["N-1", "N-2", "N-3"])

            assert pairs == {(1, "N-1"), (2, "N-2")}
            assert await repo.find_sent_pairs([], ["N-1"]) == set()
