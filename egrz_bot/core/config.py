"""
Конфигурация бота

Все значения читаются из переменных окружения (файл .env подхватывается через python-dotenv).
"""

import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(name: str, default: bool = False) -> bool:
    """Чтение булевого флага из окружения"""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    """Чтение целого числа из окружения"""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _get_float(name: str, default: float) -> float:
    """Чтение числа с плавающей точкой из окружения"""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _get_id_list(name: str) -> list[int]:
    """Чтение списка Telegram ID через запятую"""
    raw = os.getenv(name, "")
    return [int(item) for item in raw.replace(" ", "").split(",") if item]


class Config:
    """Конфигурация приложения"""

    # Telegram
    BOT_TOKEN: str = os.getenv("BOT_TOKEN", "")
    ADMIN_IDS: list[int] = _get_id_list("ADMIN_IDS")

    # База данных
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "egrz_bot.db")
    DATABASE_URL: str | None = os.getenv("DATABASE_URL")

    # Логирование
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOGS_DIR: str = os.getenv("LOGS_DIR", "logs")

    # Планировщик
    PARSE_INTERVAL_MINUTES: int = _get_int("PARSE_INTERVAL_MINUTES", 15)
    MAX_EXECUTION_MINUTES: int = _get_int("MAX_EXECUTION_MINUTES", 30)
    TIMEZONE_OFFSET_HOURS: int = _get_int("TIMEZONE_OFFSET_HOURS", 3)

    # API ЕГРЗ
    EGRZ_API_URL: str = os.getenv(
        "EGRZ_API_URL", "https://open-api.egrz.ru/api/PublicRegistrationBook/openDataFile"
    )
    EGRZ_PAGE_SIZE: int = _get_int("EGRZ_PAGE_SIZE", 100)
    EGRZ_MAX_ATTEMPTS: int = _get_int("EGRZ_MAX_ATTEMPTS", 3)
    EGRZ_RETRY_DELAY: float = _get_float("EGRZ_RETRY_DELAY", 5.0)
    EGRZ_REQUEST_TIMEOUT: float = _get_float("EGRZ_REQUEST_TIMEOUT", 60.0)
    # Фиксированная дата выборки (YYYY-MM-DD) для отладки, по умолчанию - сегодня
    EGRZ_FIXED_DATE: str | None = os.getenv("EGRZ_FIXED_DATE") or None

    # OpenAI
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    AI_MAX_RETRIES: int = _get_int("AI_MAX_RETRIES", 3)
    AI_RETRY_DELAY: float = _get_float("AI_RETRY_DELAY", 2.0)
    AI_REQUEST_TIMEOUT: float = _get_float("AI_REQUEST_TIMEOUT", 60.0)
    AI_MAX_TOKENS: int = _get_int("AI_MAX_TOKENS", 1500)
    AI_TEMPERATURE: float = _get_float("AI_TEMPERATURE", 0.1)

    # Поиск бенефициаров в интернете
    SCRAPER_ENABLED: bool = _get_bool("SCRAPER_ENABLED", False)
    GOOGLE_SEARCH_API_KEY: str = os.getenv("GOOGLE_SEARCH_API_KEY", "")
    SEARCH_ENGINE_ID: str = os.getenv("SEARCH_ENGINE_ID", "")
    SCRAPER_MAX_CHARS: int = _get_int("SCRAPER_MAX_CHARS", 4000)

    # FSM storage: Redis, если задан REDIS_URL, иначе MemoryStorage
    REDIS_URL: str | None = os.getenv("REDIS_URL") or None

    # Health-check сервер (0 - отключен)
    HEALTH_PORT: int = _get_int("HEALTH_PORT", 0)

    @classmethod
    def get_database_url(cls) -> str:
        """URL базы данных: DATABASE_URL или SQLite-файл по DATABASE_PATH"""
        if cls.DATABASE_URL:
            return cls.DATABASE_URL
        return f"sqlite+aiosqlite:///{cls.DATABASE_PATH}"

    @classmethod
    def validate(cls) -> bool:
        """
        Проверка обязательных параметров

        Returns:
            True если конфигурация корректна

        Raises:
            ValueError: Если обязательный параметр не задан
        """
        if not cls.BOT_TOKEN:
            raise ValueError("BOT_TOKEN не установлен в переменных окружения")
        if not cls.ADMIN_IDS:
            raise ValueError("ADMIN_IDS не установлены в переменных окружения")
        if cls.PARSE_INTERVAL_MINUTES <= 0:
            raise ValueError("PARSE_INTERVAL_MINUTES должен быть положительным")
        if cls.EGRZ_MAX_ATTEMPTS <= 0 or cls.AI_MAX_RETRIES <= 0:
            raise ValueError("Количество попыток должно быть положительным")
        return True


class Messages:
    """Тексты сообщений бота"""

    WELCOME_ADMIN = "Добро пожаловать, администратор! Расширенные функции доступны."
    WELCOME_ACTIVATED = "Ваш доступ к боту активирован! Используйте кнопки ниже."
    ALREADY_ADMIN = "Вы уже администратор, выбирайте команду."
    ALREADY_ACTIVATED = "Вы уже активированы, выбирайте команду."
    NO_ACCESS = "У вас нет доступа. При получении доступа повторно нажмите /start"
    PRESS_START = "Пожалуйста, нажмите /start для активации доступа."
    INTERNAL_ERROR = "Произошла внутренняя ошибка. Пожалуйста, попробуйте позже."
    ADMIN_ONLY = "Это действие доступно только администратору."

    ASK_REGION_CODE = "Введите код региона для добавления (например, 78 - Санкт-Петербург)."
    REGION_NOT_FOUND = "Код региона не найден. Попробуйте снова"
    NO_REGIONS = "У вас пока нет добавленных регионов."
    NOTHING_TO_DELETE = "Нечего удалять. У вас нет добавленных регионов."
    CHOOSE_REGION_TO_DELETE = "Нажмите на регион, чтобы его удалить:"
    ALL_REGIONS_DELETED = "Все регионы удалены."
    IMMEDIATE_PARSE_STARTED = (
        "🚀 Запускаю первоначальный поиск по новому региону. Это может занять минуту..."
    )

    ASK_USERNAME = (
        "Введите username пользователя (например, @username), которого вы хотите добавить."
    )
    EMPTY_USERNAME = "Вы ввели пустое имя. Попробуйте снова."
    NO_USERS = "В списке нет ни одного пользователя."
    CHOOSE_USER_TO_DELETE = "Нажмите на пользователя, чтобы удалить его из списка доступа:"
    ACCESS_REVOKED = "Ваш доступ к боту был отозван администратором."
    CALLBACK_FAILED = "Не удалось обработать ваше действие. Попробуйте еще раз."
    USER_ALREADY_DELETED = "Этот пользователь уже был удален."
    ALL_USERS_DELETED = "Все пользователи были удалены. Список пуст."
    CHOOSE_NEXT_USER_TO_DELETE = "Пользователь удален. Выберите следующего для удаления:"
    CHOOSE_NEXT_REGION_TO_DELETE = "Выберите регион для удаления:"
    ACTION_CANCELLED = "Действие отменено."
