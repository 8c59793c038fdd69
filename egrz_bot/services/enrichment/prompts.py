"""
Промпт для LLM и резервный шаблон уведомления
"""

from egrz_bot.core.constants import (
    CONCLUSION_LABEL,
    SECTION_DEVELOPER,
    SECTION_OBJECT,
    SECTION_PREPARER,
)
from egrz_bot.schemas.record import RegistryRecord
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.utils.helpers import format_date


def region_name(region: RegionLabel | str) -> str:
    """Название региона без кода"""
    if isinstance(region, RegionLabel):
        return region.name
    return region.rsplit(" - ", 1)[0]


def record_date_text(record: RegistryRecord) -> str:
    """Дата заключения как DD.MM.YYYY (или как пришла, если не разбирается)"""
    parsed = record.parsed_conclusion_date
    if parsed is None:
        return record.conclusion_date
    return format_date(parsed)


def render_fallback(record: RegistryRecord, region: RegionLabel | str) -> str:
    """Минимальное уведомление без LLM"""
    return (
        f"Новый лид за {record_date_text(record)} (регион: {region})\n"
        f"Номер заключения: {record.conclusion_number}\n"
        f"Застройщик: {record.developer_info}"
    )


def build_prompt(
    record: RegistryRecord,
    region: RegionLabel | str,
    beneficiary_info: str | None = None,
) -> str:
    """
    Системный промпт: правила форматирования и шаблон итогового отчёта

    beneficiary_info передаётся только при включенном поиске в интернете.
    """
    beneficiary_block = ""
    if beneficiary_info:
        beneficiary_block = (
            "\n3.  **Сведения из открытых источников о застройщике** (используй, чтобы уточнить"
            " название и ИНН, не добавляй отдельный раздел):\n"
            f"{beneficiary_info}\n"
        )

    return f"""
Твоя роль - AI-ассистент, который извлекает, сокращает и форматирует информацию для создания структурированного отчета.
Твоя главная задача - вернуть ПОЛНОСТЬЮ готовый отчет в указанном формате, строго следуя правилам.

**ПРАВИЛА ФОРМАТИРОВАНИЯ ДАННЫХ:**
1.  **"Кто подготовил документацию" и "Сведения о застройщике":**
    * Извлеки и оставь только: сокращенную форму (ООО, АО и т.д.), название в кавычках и ИНН. **Всегда оставляй ИНН.**
    * **Убирай ОГРН**, если есть ИНН.
    * **Для ИП:** Оставляй ФИО и ОГРНИП.
    * Сокращай адрес (убирай "Россия", "МЕСТО НАХОЖДЕНИЯ", лишние детали).
    * **Пример:** 'ООО "Название" (ИНН: 1234567890, Москва, ул. Ленина, д. 1)'
    * **Пример для ИП:** 'ИП Иванов И.И. (ОГРНИП: 321098765432101, Вологда, ул. Мира, д. 1)'

2.  **"Наименование и адрес объекта":**
    * Убери всю информацию после слов "Почтовый адрес:". Оставь только описание объекта.
{beneficiary_block}
---
**Верни ТОЛЬКО итоговый отчет и ничего больше.**

**ФОРМАТ ИТОГОВОГО ОТЧЕТА:**
Новый лид за {record_date_text(record)} (регион: {region_name(region)})

{CONCLUSION_LABEL} {record.conclusion_number}
Результат: {record.expertise_result}

{SECTION_PREPARER} Кто подготовил документацию:
отформатированные данные из {record.preparer_info}

{SECTION_DEVELOPER} Сведения о застройщике:
отформатированные данные из {record.developer_info}

{SECTION_OBJECT} Наименование и адрес объекта:
отформатированные данные из {record.object_info}
"""
