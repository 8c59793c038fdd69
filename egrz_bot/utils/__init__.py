"""Утилиты и вспомогательные функции"""
from egrz_bot.utils.helpers import (
    MOSCOW_TZ,
    collapse_whitespace,
    create_callback_data,
    escape_html,
    format_date,
    get_now,
    local_calendar_date,
    parse_callback_data,
    parse_iso_date,
    timezone_from_offset,
    truncate_text,
)
from egrz_bot.utils.retry import async_retry, call_with_retry, compute_delay


__all__ = [
    "MOSCOW_TZ",
    # Retry utilities
    "async_retry",
    "call_with_retry",
    "collapse_whitespace",
    "compute_delay",
    "create_callback_data",
    "escape_html",
    "format_date",
    # DateTime utilities
    "get_now",
    "local_calendar_date",
    "parse_callback_data",
    "parse_iso_date",
    "timezone_from_offset",
    "truncate_text",
]
