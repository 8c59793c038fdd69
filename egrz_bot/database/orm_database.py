"""
SQLAlchemy ORM Database класс
"""

import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from egrz_bot.core.config import Config
from egrz_bot.database.orm_models import Base


logger = logging.getLogger(__name__)


class ORMDatabase:
    """Класс для работы с базой данных через SQLAlchemy ORM"""

    def __init__(self, database_url: str | None = None):
        """
        Инициализация ORM Database

        Args:
            database_url: URL базы данных (SQLite или PostgreSQL/MySQL с async-драйвером)
        """
        self.database_url = database_url or Config.get_database_url()
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None
        self._is_sqlite = self.database_url.startswith("sqlite")
        self._is_memory = self._is_sqlite and ":memory:" in self.database_url

    async def connect(self):
        """Подключение к базе данных"""
        try:
            logger.info("Инициализация подключения к БД...")
            logger.info(f"   Database URL: {self.database_url}")

            engine_kwargs: dict = {"echo": False}
            if self._is_memory:
                # In-memory SQLite живёт в одном соединении - делим его между сессиями
                engine_kwargs["poolclass"] = StaticPool
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            elif self._is_sqlite:
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                engine_kwargs["pool_pre_ping"] = True  # Проверка соединения перед использованием
                engine_kwargs["pool_recycle"] = 3600  # Переподключение каждый час

            self.engine = create_async_engine(self.database_url, **engine_kwargs)

            self.session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,  # Важно для async работы
            )

            logger.info(f"OK: Подключено к базе данных: {self.database_url}")
            logger.debug("Используйте 'alembic upgrade head' для применения миграций БД")

        except Exception as e:
            logger.exception(f"ERROR: Ошибка подключения к БД: {e}")
            raise

    async def init_db(self):
        """
        Создание таблиц по ORM моделям

        Для production используйте миграции Alembic, здесь - dev/тесты.
        """
        if not self.engine:
            raise RuntimeError("База данных не подключена")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("OK: Таблицы БД созданы/проверены")

    async def disconnect(self):
        """Отключение от базы данных"""
        if self.engine:
            await self.engine.dispose()
            logger.info("Отключено от базы данных")

    @asynccontextmanager
    async def get_session(self):
        """
        Context manager для получения сессии

        Usage:
            async with db.get_session() as session:
                repo = SubscriptionRepository(session)
                # Автоматический commit/rollback
        """
        if not self.session_factory:
            raise RuntimeError("База данных не подключена")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error(f"ERROR: Транзакция отменена (rollback): {e}")
                raise
