"""Pydantic schemas package"""
from egrz_bot.schemas.record import RegistryRecord
from egrz_bot.schemas.subscription import RegionLabel, UserConfig


__all__ = [
    "RegionLabel",
    "RegistryRecord",
    "UserConfig",
]
