"""
Alembic environment configuration
"""
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import engine_from_config, pool
from alembic import context

# Добавляем корневую директорию в путь
sys.path.insert(0, str(Path(__file__).parent.parent))

from egrz_bot.core.config import Config
from egrz_bot.database.orm_models import Base


def get_sync_database_url() -> str:
    """Alembic работает синхронно: убираем async-драйвер из URL"""
    url = Config.get_database_url()
    return url.replace("+aiosqlite", "").replace("+asyncpg", "")


config = context.config
config.set_main_option("sqlalchemy.url", get_sync_database_url())

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_name(name, type_, parent_names):
    """Игнорируем временные таблицы Alembic"""
    if type_ == "table" and name.startswith("_alembic"):
        return False
    return True


def include_object(object, name, type_, reflected, compare_to):
    """Внешние ключи в SQLite часто без имён - не сравниваем их"""
    if type_ == "foreign_key_constraint":
        return False
    return True


def run_migrations_offline() -> None:
    """Генерация SQL без подключения к БД"""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,  # Важно для SQLite при ALTER TABLE
        include_name=include_name,
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Применение миграций к подключённой БД"""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
            compare_type=False,
            include_name=include_name,
            include_object=include_object,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
