"""
Тесты для модуля config
"""
import pytest

from egrz_bot.core.config import Config, _get_bool, _get_id_list
from egrz_bot.core.constants import AccessTier
from egrz_bot.core.regions import REGIONS, normalize_region_code


class TestAccessTier:
    """Тесты для уровней доступа"""

    def test_order(self):
        """Уровни упорядочены по приоритету"""
        assert AccessTier.ADMIN > AccessTier.ACTIVATED > AccessTier.REGISTERED > AccessTier.NONE

    def test_can_use_bot(self):
        """Меню доступно только активированным и администраторам"""
        assert AccessTier.ADMIN.can_use_bot
        assert AccessTier.ACTIVATED.can_use_bot
        assert not AccessTier.REGISTERED.can_use_bot
        assert not AccessTier.NONE.can_use_bot

    def test_is_admin(self):
        assert AccessTier.ADMIN.is_admin
        assert not AccessTier.ACTIVATED.is_admin


class TestRegions:
    """Тесты справочника регионов"""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("78", "78"),
            (" 7 ", "07"),
            ("07", "07"),
            ("78 - Санкт-Петербург", "78"),
            ("99", None),
            ("abc", None),
            ("", None),
        ],
    )
    def test_normalize_region_code(self, raw, expected):
        """Приведение введённого кода к ключу справочника"""
        assert normalize_region_code(raw) == expected

    def test_known_regions(self):
        assert REGIONS["78"] == "Санкт-Петербург"
        assert REGIONS["77"] == "Москва"


class TestEnvHelpers:
    """Тесты чтения переменных окружения"""

    def test_get_bool(self, monkeypatch):
        monkeypatch.setenv("TEST_FLAG", "True")
        assert _get_bool("TEST_FLAG") is True
        monkeypatch.setenv("TEST_FLAG", "0")
        assert _get_bool("TEST_FLAG") is False
        monkeypatch.delenv("TEST_FLAG")
        assert _get_bool("TEST_FLAG", default=True) is True

    def test_get_id_list(self, monkeypatch):
        monkeypatch.setenv("TEST_IDS", "1, 2,3,")
        assert _get_id_list("TEST_IDS") == [1, 2, 3]


class TestConfig:
    """Тесты для класса Config"""

    def test_validate_with_empty_token(self, monkeypatch):
        """Тест валидации с пустым токеном"""
        monkeypatch.setattr(Config, "BOT_TOKEN", "")
        monkeypatch.setattr(Config, "ADMIN_IDS", [123])

        with pytest.raises(ValueError, match="BOT_TOKEN не установлен"):
            Config.validate()

    def test_validate_with_empty_admin_ids(self, monkeypatch):
        """Тест валидации с пустым списком админов"""
        monkeypatch.setattr(Config, "BOT_TOKEN", "test_token")
        monkeypatch.setattr(Config, "ADMIN_IDS", [])

        with pytest.raises(ValueError, match="ADMIN_IDS не установлены"):
            Config.validate()

    def test_validate_with_zero_interval(self, monkeypatch):
        monkeypatch.setattr(Config, "BOT_TOKEN", "test_token")
        monkeypatch.setattr(Config, "ADMIN_IDS", [123])
        monkeypatch.setattr(Config, "PARSE_INTERVAL_MINUTES", 0)

        with pytest.raises(ValueError, match="PARSE_INTERVAL_MINUTES"):
            Config.validate()

    def test_validate_success(self, monkeypatch):
        """Тест успешной валидации"""
        monkeypatch.setattr(Config, "BOT_TOKEN", "test_token")
        monkeypatch.setattr(Config, "ADMIN_IDS", [123])

        assert Config.validate() is True

    def test_database_url_from_path(self, monkeypatch):
        """Без DATABASE_URL используется SQLite-файл"""
        monkeypatch.setattr(Config, "DATABASE_URL", None)
        monkeypatch.setattr(Config, "DATABASE_PATH", "test.db")
        assert Config.get_database_url() == "sqlite+aiosqlite:///test.db"

    def test_database_url_explicit(self, monkeypatch):
        monkeypatch.setattr(Config, "DATABASE_URL", "sqlite+aiosqlite:///other.db")
        assert Config.get_database_url() == "sqlite+aiosqlite:///other.db"
