"""
Retry механизм для сетевых запросов (ЕГРЗ, LLM, Bot API)
"""
import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Literal, TypeVar

from aiogram.exceptions import (
    TelegramNetworkError,
    TelegramRetryAfter,
    TelegramServerError,
)

from egrz_bot.core.exceptions import TransientFetchError


logger = logging.getLogger(__name__)

T = TypeVar("T")

Backoff = Literal["fixed", "linear"]

# Исключения Bot API, которые можно повторять
RETRYABLE_TELEGRAM_EXCEPTIONS = (
    TelegramNetworkError,  # Сетевые ошибки
    TelegramServerError,  # Ошибки сервера Telegram (5xx)
    TelegramRetryAfter,  # Превышен лимит запросов (429)
)


def compute_delay(attempt: int, delay: float, backoff: Backoff = "fixed") -> float:
    """
    Задержка перед следующей попыткой

    Args:
        attempt: Номер неудачной попытки (с 1)
        delay: Базовая задержка (секунды)
        backoff: "fixed" - всегда delay, "linear" - delay * attempt
    """
    if backoff == "linear":
        return delay * attempt
    return delay


async def call_with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: Backoff = "fixed",
    retry_on: tuple[type[BaseException], ...] = (TransientFetchError,),
    operation: str | None = None,
    **kwargs: Any,
) -> T:
    """
    Вызов корутины с ограниченным числом повторов

    Повторяются только исключения из retry_on, остальные пробрасываются сразу.
    После исчерпания попыток пробрасывается последнее исключение.
    Ожидание кооперативное (asyncio.sleep), другие задачи не блокируются.

    Args:
        func: Асинхронная функция
        max_attempts: Максимальное количество попыток
        delay: Базовая задержка между попытками (секунды)
        backoff: Стратегия роста задержки
        retry_on: Кортеж исключений для повтора
        operation: Имя операции для логов
    """
    name = operation or getattr(func, "__name__", "operation")

    for attempt in range(1, max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt >= max_attempts:
                logger.error(
                    "%s: Max attempts reached (%d). Giving up. Last error: %s",
                    name,
                    max_attempts,
                    e,
                )
                raise

            wait_time = compute_delay(attempt, delay, backoff)
            logger.warning(
                "%s: %s occurred. Attempt %d/%d. Retrying in %.2f seconds. Error: %s",
                name,
                type(e).__name__,
                attempt,
                max_attempts,
                wait_time,
                e,
            )
            await asyncio.sleep(wait_time)

    # max_attempts <= 0
    raise ValueError("max_attempts должен быть положительным")


def async_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: Backoff = "fixed",
    retry_on: tuple[type[BaseException], ...] = (TransientFetchError,),
) -> Callable:
    """
    Декоратор для повтора асинхронных вызовов

    Example:
        @async_retry(max_attempts=3, delay=5)
        async def download(url):
            ...
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await call_with_retry(
                func,
                *args,
                max_attempts=max_attempts,
                delay=delay,
                backoff=backoff,
                retry_on=retry_on,
                operation=func.__name__,
                **kwargs,
            )

        return wrapper

    return decorator
