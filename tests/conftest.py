"""
Pytest fixtures и конфигурация для тестов
"""
import sys
from collections.abc import AsyncGenerator
from datetime import date
from pathlib import Path

import pytest
import pytest_asyncio


# Добавляем корневую директорию в PYTHONPATH
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from egrz_bot.core.constants import RecordField
from egrz_bot.core.exceptions import RecipientUnavailable
from egrz_bot.database import ORMDatabase
from egrz_bot.schemas.record import RegistryRecord
from egrz_bot.schemas.subscription import RegionLabel


TEST_DAY = date(2025, 7, 1)

CSV_HEADER = ";".join(
    [
        RecordField.CONCLUSION_NUMBER,
        RecordField.CONCLUSION_DATE,
        RecordField.EXPERTISE_RESULT,
        RecordField.PREPARER_INFO,
        RecordField.DEVELOPER_INFO,
        RecordField.OBJECT_INFO,
        RecordField.SUBJECT_RF,
    ]
)


def make_record(
    number: str = "78-1-1-3-000001-2025",
    developer: str = 'ООО "Застройщик" (ИНН: 7801234567, Санкт-Петербург)',
    subject: str = "Санкт-Петербург",
) -> RegistryRecord:
    """Запись реестра с правдоподобными значениями"""
    return RegistryRecord(
        conclusion_number=number,
        conclusion_date="01.07.2025",
        expertise_result="Положительное заключение",
        preparer_info='ООО "Проект" (ИНН: 7807654321)',
        developer_info=developer,
        object_info="Многоквартирный жилой дом, Санкт-Петербург, ул. Ленина, д. 1",
        subject_rf=subject,
    )


def quality_text(number: str) -> str:
    """Текст, проходящий проверку качества уведомления"""
    return (
        f"Новый лид за 01.07.2025 (регион: Санкт-Петербург)\n\n"
        f"Номер заключения экспертизы: {number}\n"
        f"Результат: Положительное заключение\n\n"
        f'🏙️ Кто подготовил документацию:\nООО "Проект" (ИНН: 7807654321)\n\n'
        f'🏠 Сведения о застройщике:\nООО "Застройщик" (ИНН: 7801234567)\n\n'
        f"🏭 Наименование и адрес объекта:\nМногоквартирный жилой дом"
    )


class FakeRegistry:
    """Выгрузка ЕГРЗ в памяти: регион -> записи или исключение"""

    def __init__(self, data: dict | None = None):
        self.data: dict[str, list[RegistryRecord] | Exception] = data or {}
        self.calls: list[tuple[str, date]] = []

    async def fetch(self, region: RegionLabel | str, day: date) -> list[RegistryRecord]:
        key = region.code if isinstance(region, RegionLabel) else region
        self.calls.append((key, day))
        result = self.data.get(key, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeLLM:
    """LLM, отвечающий качественным текстом (или заранее заданной последовательностью)"""

    def __init__(self, responses: list | None = None, configured: bool = True):
        self.responses = list(responses or [])
        self.configured = configured
        self.prompts: list[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        number = prompt.split("Номер заключения экспертизы: ", 1)[1].split("\n", 1)[0]
        return quality_text(number.strip())


class FakeMessenger:
    """Отправка в память; для chat_id из unavailable - RecipientUnavailable"""

    def __init__(self, unavailable: set[int] | None = None):
        self.unavailable = unavailable or set()
        self.sent: list[tuple[int, str]] = []

    async def send_text(self, chat_id: int, text: str, reply_markup=None) -> None:
        if chat_id in self.unavailable:
            raise RecipientUnavailable(chat_id, "Forbidden: bot was blocked by the user")
        self.sent.append((chat_id, text))

    def sent_to(self, chat_id: int) -> list[str]:
        return [text for target, text in self.sent if target == chat_id]


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[ORMDatabase, None]:
    """
    Фикстура для тестовой базы данных (in-memory)
    """
    database = ORMDatabase("sqlite+aiosqlite:///:memory:")
    await database.connect()
    await database.init_db()
    yield database
    await database.disconnect()


@pytest.fixture
def spb() -> RegionLabel:
    return RegionLabel(name="Санкт-Петербург", code="78")


@pytest.fixture
def msk() -> RegionLabel:
    return RegionLabel(name="Москва", code="77")


@pytest.fixture
def admin_id() -> int:
    """
    Фикстура для ID администратора
    """
    return 123456789


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_messenger() -> FakeMessenger:
    return FakeMessenger()
