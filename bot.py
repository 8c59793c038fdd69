"""
Главный файл Telegram бота уведомлений о новых заключениях экспертизы ЕГРЗ
"""

import asyncio
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode, UpdateType
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from aiogram.types import BotCommand

from egrz_bot.core.config import Config
from egrz_bot.database import get_database
from egrz_bot.handlers import routers
from egrz_bot.middlewares import (
    AccessCheckMiddleware,
    DependencyInjectionMiddleware,
    LoggingMiddleware,
    global_error_handler,
)
from egrz_bot.services.delivery_tracker import DeliveryTracker
from egrz_bot.services.enrichment import (
    BeneficiaryLookup,
    EnrichmentPipeline,
    OpenAICompletionClient,
)
from egrz_bot.services.health import HealthServer
from egrz_bot.services.lead_cache import LeadCache
from egrz_bot.services.lead_processor import LeadProcessor
from egrz_bot.services.messaging import MessagingGateway
from egrz_bot.services.registry_client import RegistryClient
from egrz_bot.services.scheduler import TaskScheduler
from egrz_bot.services.subscription_aggregator import SubscriptionAggregator
from egrz_bot.services.subscription_service import SubscriptionService
from egrz_bot.services.user_service import UserService
from egrz_bot.utils.sentry import init_sentry


"""
Логирование:
- файл LOGS_DIR/bot.log с ротацией
- если нет прав на запись (напр., bind mount в Docker), только консоль
"""

log_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)
if hasattr(console_handler.stream, "reconfigure"):
    console_handler.stream.reconfigure(encoding="utf-8")

handlers: list[logging.Handler] = [console_handler]

log_file_path = Path(Config.LOGS_DIR) / "bot.log"
try:
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        str(log_file_path),
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(log_formatter)
    handlers.insert(0, file_handler)
except OSError as e:
    sys.stderr.write(f"[logging] WARNING: cannot use file logging at {log_file_path}: {e}\n")

log_level = getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)
logging.basicConfig(level=log_level, handlers=handlers)

logger = logging.getLogger(__name__)

# Сторонние библиотеки слишком многословны на DEBUG
NOISY_LOGGERS = ("aiogram", "apscheduler", "aiosqlite", "aiohttp", "openai", "httpx")

logging.getLogger("egrz_bot").setLevel(log_level)
if log_level == logging.DEBUG:
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logger.info("DEBUG режим включен (LOG_LEVEL=DEBUG)")
else:
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


async def on_startup(bot: Bot, scheduler: TaskScheduler, health_server: HealthServer | None):
    """
    Действия при запуске бота

    Args:
        bot: Экземпляр бота
        scheduler: Планировщик задач
        health_server: Health-check сервер (если включен)
    """
    await scheduler.start()

    if health_server is not None:
        await health_server.start()

    commands = [
        BotCommand(command="start", description="Главное меню / активация доступа"),
        BotCommand(command="cancel", description="Отменить ввод"),
    ]
    await bot.set_my_commands(commands)
    logger.info("Команды бота обновлены")

    logger.info("Бот успешно запущен!")


def build_enrichment_pipeline() -> tuple[
    EnrichmentPipeline, OpenAICompletionClient, BeneficiaryLookup | None
]:
    """Сборка генерации текстов: OpenAI + (опционально) поиск бенефициаров"""
    llm = OpenAICompletionClient()
    if not llm.is_configured:
        logger.warning("OPENAI_API_KEY не задан - уведомления будут по резервному шаблону")

    lookup = None
    if Config.SCRAPER_ENABLED:
        lookup = BeneficiaryLookup()
        if not lookup.is_configured:
            logger.warning(
                "SCRAPER_ENABLED=true, но GOOGLE_SEARCH_API_KEY/SEARCH_ENGINE_ID не заданы"
            )
    return EnrichmentPipeline(llm, beneficiary_lookup=lookup), llm, lookup


async def main():
    """Основная функция запуска бота"""

    bot = None
    db = None
    dp = None
    scheduler = None
    health_server = None
    registry = None
    llm = None
    lookup = None

    try:
        # Инициализация Sentry (опционально)
        init_sentry()

        try:
            Config.validate()
        except ValueError as e:
            logger.error("Ошибка конфигурации: %s", e)
            sys.exit(1)

        bot = Bot(token=Config.BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))

        # Redis для production, MemoryStorage для разработки
        if Config.REDIS_URL:
            logger.info("Используется RedisStorage для FSM")
            storage = RedisStorage.from_url(Config.REDIS_URL)
        else:
            logger.warning("Используется MemoryStorage (состояния потеряются при рестарте)")
            storage = MemoryStorage()

        dp = Dispatcher(storage=storage)

        logger.info("Инициализация базы данных...")
        db = get_database()
        await db.connect()
        await db.init_db()
        logger.info("OK: База данных инициализирована")

        # Конвейер обработки лидов
        registry = RegistryClient()
        pipeline, llm, lookup = build_enrichment_pipeline()
        processor = LeadProcessor(
            registry=registry,
            cache=LeadCache(db),
            pipeline=pipeline,
            tracker=DeliveryTracker(db),
            messenger=MessagingGateway(bot),
        )
        scheduler = TaskScheduler(SubscriptionAggregator(db), processor)

        if Config.HEALTH_PORT:
            health_server = HealthServer(scheduler, Config.HEALTH_PORT)

        user_service = UserService(db)
        subscription_service = SubscriptionService(db)

        # 1. Logging middleware (первым - логирует все входящие события)
        logging_middleware = LoggingMiddleware()
        dp.message.middleware(logging_middleware)
        dp.callback_query.middleware(logging_middleware)

        # 2. Проверка доступа (белый список + администраторы)
        access_middleware = AccessCheckMiddleware(user_service)
        dp.message.middleware(access_middleware)
        dp.callback_query.middleware(access_middleware)

        # 3. Dependency Injection middleware
        di_middleware = DependencyInjectionMiddleware(
            db, user_service, subscription_service, scheduler
        )
        dp.message.middleware(di_middleware)
        dp.callback_query.middleware(di_middleware)

        for router in routers:
            dp.include_router(router)
        logger.info("Подключено %s роутеров", len(routers))

        dp.errors.register(global_error_handler)

        await on_startup(bot, scheduler, health_server)

        await dp.start_polling(
            bot,
            allowed_updates=[UpdateType.MESSAGE, UpdateType.CALLBACK_QUERY],
            drop_pending_updates=True,
        )

    except KeyboardInterrupt:
        logger.info("Получен сигнал остановки (Ctrl+C)")
    except Exception as e:
        logger.exception("Критическая ошибка: %s", e)
    finally:
        logger.info("Начало процедуры остановки...")

        if scheduler:
            try:
                await scheduler.stop()
            except Exception as e:
                logger.error("Ошибка при остановке scheduler: %s", e)

        if health_server:
            try:
                await health_server.stop()
            except Exception as e:
                logger.error("Ошибка при остановке health-check сервера: %s", e)

        for client in (registry, llm, lookup):
            if client is None:
                continue
            try:
                await client.close()
            except Exception as e:
                logger.error("Ошибка при закрытии клиента %s: %s", type(client).__name__, e)

        if db:
            try:
                await db.disconnect()
            except Exception as e:
                logger.error("Ошибка при отключении БД: %s", e)

        # Закрытие storage (для Redis)
        if dp:
            try:
                await dp.storage.close()
                logger.info("Storage закрыт")
            except Exception as e:
                logger.error("Ошибка при закрытии storage: %s", e)

        if bot:
            try:
                await bot.session.close()
                logger.info("Bot session закрыта")
            except Exception as e:
                logger.error("Ошибка при закрытии bot session: %s", e)

        logger.info("Бот полностью остановлен")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Бот остановлен пользователем")
    except Exception as e:
        logger.critical("Неожиданная ошибка: %s", e)
        sys.exit(1)
