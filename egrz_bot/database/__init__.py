"""
Database package: ORM модели и класс подключения.
"""

from egrz_bot.database.orm_database import ORMDatabase
from egrz_bot.database.orm_models import Base, DeliveryRecord, ProcessedLead, Subscription, User


Database = ORMDatabase


def get_database() -> ORMDatabase:
    """
    Фабрика для получения экземпляра БД.

    Используйте эту функцию вместо прямого вызова `ORMDatabase()`
    в точке входа.
    """
    return ORMDatabase()


__all__ = [
    "Base",
    "Database",
    "DeliveryRecord",
    "ORMDatabase",
    "ProcessedLead",
    "Subscription",
    "User",
    "get_database",
]
