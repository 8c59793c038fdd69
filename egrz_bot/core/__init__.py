"""Ядро приложения - конфигурация, константы, исключения"""

from egrz_bot.core.config import Config, Messages
from egrz_bot.core.constants import AccessTier, RecordField


__all__ = [
    "AccessTier",
    "Config",
    "Messages",
    "RecordField",
]
