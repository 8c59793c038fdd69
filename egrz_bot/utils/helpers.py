"""
Вспомогательные функции
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from html import escape


logger = logging.getLogger(__name__)


# Московский часовой пояс (UTC+3)
MOSCOW_TZ = timezone(timedelta(hours=3))


def get_now(tz: tzinfo = MOSCOW_TZ) -> datetime:
    """
    Получить текущее время в часовом поясе (по умолчанию московском)

    Returns:
        datetime объект с timezone
    """
    return datetime.now(tz)


def local_calendar_date(tz: tzinfo = MOSCOW_TZ) -> date:
    """
    Текущая календарная дата в указанном часовом поясе

    Выгрузка ЕГРЗ запрашивается за "сегодня" по Москве, а не по UTC.
    """
    return get_now(tz).date()


def timezone_from_offset(hours: int) -> tzinfo:
    """Часовой пояс по смещению от UTC в часах"""
    if hours == 3:
        return MOSCOW_TZ
    return timezone(timedelta(hours=hours))


def parse_iso_date(value: str | None) -> date | None:
    """
    Разбор даты YYYY-MM-DD

    Returns:
        date или None, если строка пустая/некорректная
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.warning(f"Некорректная дата: {value!r}, ожидается YYYY-MM-DD")
        return None


def format_date(d: date) -> str:
    """Форматирование даты как DD.MM.YYYY"""
    return d.strftime("%d.%m.%Y")


def escape_html(text: str) -> str:
    """Экранирование HTML для parse_mode=HTML"""
    return escape(text)


def collapse_whitespace(text: str) -> str:
    """Схлопывание последовательностей пробельных символов в один пробел"""
    return re.sub(r"\s\s+", " ", text).strip()


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Обрезка текста до заданной длины

    Args:
        text: Исходный текст
        max_length: Максимальная длина
        suffix: Суффикс для обрезанного текста
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def parse_callback_data(callback_data: str) -> dict:
    """
    Парсинг callback data

    Args:
        callback_data: Строка callback data (формат: action:param1:param2)

    Returns:
        Словарь с распарсенными данными
    """
    parts = callback_data.split(":")
    return {
        "action": parts[0] if len(parts) > 0 else None,
        "params": parts[1:] if len(parts) > 1 else [],
    }


def create_callback_data(action: str, *params) -> str:
    """Создание callback data (action:param1:param2)"""
    return ":".join([action] + [str(p) for p in params])
