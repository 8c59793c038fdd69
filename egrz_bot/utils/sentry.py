"""
Опциональная интеграция Sentry для error tracking
"""

import logging
import os


logger = logging.getLogger(__name__)


def init_sentry() -> str | None:
    """
    Инициализация Sentry (только если задан SENTRY_DSN)

    Ошибки уровня ERROR из логов (сбои прогонов планировщика, недоступность ЕГРЗ,
    исчерпание квоты OpenAI) уходят в Sentry как события, INFO - как breadcrumbs.

    Returns:
        Sentry DSN если успешно, None если Sentry не настроен
    """
    sentry_dsn = os.getenv("SENTRY_DSN")
    environment = os.getenv("ENVIRONMENT", "development")

    if not sentry_dsn:
        logger.info("Sentry DSN не настроен, error tracking отключен")
        return None

    try:
        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration
    except ImportError:
        logger.warning("Sentry SDK не установлен. Установите extra: monitoring (sentry-sdk)")
        return None

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=environment,
        traces_sample_rate=0.1,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        send_default_pii=False,  # Не отправляем username и тексты сообщений
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )
    sentry_sdk.set_tag("service", "egrz-lead-bot")

    logger.info(f"Sentry инициализирован (environment: {environment})")
    return sentry_dsn
