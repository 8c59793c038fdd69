"""
Тесты подписок, агрегатора регионов и белого списка пользователей
"""
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from egrz_bot.core.config import Messages
from egrz_bot.core.constants import AccessTier
from egrz_bot.core.exceptions import StoreUnavailable
from egrz_bot.database.orm_models import Subscription
from egrz_bot.middlewares.access_check import AccessCheckMiddleware
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.services.subscription_aggregator import SubscriptionAggregator
from egrz_bot.services.subscription_service import SubscriptionService
from egrz_bot.services.user_service import UserService


async def store_raw_config(db, user_id: int, raw: str) -> None:
    async with db.get_session() as session:
        session.add(Subscription(user_id=user_id, config_data=raw))


class TestSubscriptionAggregator:
    """Тесты построения карты регион -> подписчики"""

    @pytest.mark.asyncio
    async def test_inverts_subscriptions(self, db, spb, msk):
        await store_raw_config(db, 1, '{"regions": ["Санкт-Петербург - 78", "Москва - 77"]}')
        await store_raw_config(db, 2, '{"regions": ["Санкт-Петербург - 78"]}')
        await store_raw_config(db, 3, '{"regions": []}')

        region_map = await SubscriptionAggregator(db).collect()

        assert region_map == {spb: {1, 2}, msk: {1}}

    @pytest.mark.asyncio
    async def test_duplicate_regions_collapse(self, db, spb):
        await store_raw_config(
            db, 1, '{"regions": ["Санкт-Петербург - 78", "Санкт-Петербург - 78"]}'
        )

        assert await SubscriptionAggregator(db).collect() == {spb: {1}}

    @pytest.mark.asyncio
    async def test_corrupt_config_is_skipped(self, db, spb, caplog):
        await store_raw_config(db, 1, "{broken json")
        await store_raw_config(db, 2, '{"regions": ["без кода"]}')
        await store_raw_config(db, 3, '{"regions": ["Санкт-Петербург - 78"]}')

        region_map = await SubscriptionAggregator(db).collect()

        assert region_map == {spb: {3}}
        assert "Ошибка парсинга конфигурации для пользователя 1" in caplog.text

    @pytest.mark.asyncio
    async def test_store_unavailable(self):
        @asynccontextmanager
        async def broken_session():
            raise OperationalError("SELECT", {}, Exception("database is locked"))
            yield

        db = MagicMock()
        db.get_session = broken_session

        with pytest.raises(StoreUnavailable):
            await SubscriptionAggregator(db).collect()


class TestSubscriptionService:
    """Тесты добавления и удаления регионов"""

    @pytest.mark.asyncio
    async def test_add_region(self, db, spb):
        service = SubscriptionService(db)

        assert await service.add_region(1, " 78 ") == (spb, True)
        assert await service.add_region(1, "78") == (spb, False)
        assert await service.get_regions(1) == [spb]

    @pytest.mark.asyncio
    async def test_unknown_code(self, db):
        assert await SubscriptionService(db).add_region(1, "999") == (None, False)

    @pytest.mark.asyncio
    async def test_remove_region(self, db, spb, msk):
        service = SubscriptionService(db)
        await service.add_region(1, "78")
        await service.add_region(1, "77")

        assert await service.remove_region(1, "78") == spb
        assert await service.remove_region(1, "78") is None
        assert await service.get_regions(1) == [msk]


class TestUserService:
    """Тесты уровней доступа и белого списка"""

    @pytest.mark.asyncio
    async def test_access_tier_precedence(self, db, admin_id):
        service = UserService(db, admin_ids=[admin_id])
        await service.add_username("@registered")
        await service.add_username("activated")
        await service.activate("activated", 555)

        assert await service.get_access_tier(admin_id, None) is AccessTier.ADMIN
        assert await service.get_access_tier(555, "activated") is AccessTier.ACTIVATED
        assert await service.get_access_tier(777, "registered") is AccessTier.REGISTERED
        assert await service.get_access_tier(888, "stranger") is AccessTier.NONE
        assert await service.get_access_tier(889, None) is AccessTier.NONE

    @pytest.mark.asyncio
    async def test_admin_in_whitelist_is_still_admin(self, db, admin_id):
        service = UserService(db, admin_ids=[admin_id])
        await service.add_username("boss")
        await service.activate("boss", admin_id)

        assert await service.get_access_tier(admin_id, "boss") is AccessTier.ADMIN

    @pytest.mark.asyncio
    async def test_add_empty_username(self, db):
        with pytest.raises(ValueError):
            await UserService(db, admin_ids=[]).add_username("@")

    @pytest.mark.asyncio
    async def test_delete_user(self, db):
        service = UserService(db, admin_ids=[])
        user, _ = await service.add_username("ivan")
        await service.activate("ivan", 555)

        deleted = await service.delete_user(user.id)

        assert deleted is not None
        assert deleted.user_id == 555
        assert deleted.get_display_name() == "@ivan"
        assert await service.delete_user(user.id) is None
        assert await service.get_access_tier(555, "ivan") is AccessTier.NONE


def make_message(text: str, user_id: int = 777, username: str | None = "guest"):
    from aiogram.types import Message

    message = MagicMock(spec=Message)
    message.text = text
    message.from_user = MagicMock(id=user_id, username=username)
    message.answer = AsyncMock()
    return message


class TestAccessCheckMiddleware:
    """Тесты гейткипера"""

    @pytest.mark.asyncio
    async def test_activated_user_passes(self):
        user_service = MagicMock()
        user_service.get_access_tier = AsyncMock(return_value=AccessTier.ACTIVATED)
        handler = AsyncMock(return_value="handled")
        data = {}

        result = await AccessCheckMiddleware(user_service)(handler, make_message("Мои регионы"), data)

        assert result == "handled"
        assert data["access_tier"] is AccessTier.ACTIVATED

    @pytest.mark.asyncio
    async def test_start_always_passes(self):
        user_service = MagicMock()
        user_service.get_access_tier = AsyncMock(return_value=AccessTier.NONE)
        handler = AsyncMock()

        await AccessCheckMiddleware(user_service)(handler, make_message("/start"), {})

        handler.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("tier", "expected"),
        [(AccessTier.REGISTERED, Messages.PRESS_START), (AccessTier.NONE, Messages.NO_ACCESS)],
    )
    async def test_denied(self, tier, expected):
        user_service = MagicMock()
        user_service.get_access_tier = AsyncMock(return_value=tier)
        handler = AsyncMock()
        message = make_message("Мои регионы")

        await AccessCheckMiddleware(user_service)(handler, message, {})

        handler.assert_not_awaited()
        assert message.answer.await_args.args[0] == expected


def test_region_label_from_code_matches_directory():
    assert RegionLabel.from_code("78") == RegionLabel(name="Санкт-Петербург", code="78")
