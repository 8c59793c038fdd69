"""
Исключения предметной области

Ошибки адаптеров (aiohttp, openai, aiogram, SQLAlchemy) переводятся в эти классы
на границе сервиса, ядро работает только с ними.
"""


class LeadBotError(Exception):
    """Базовое исключение приложения"""


class TransientFetchError(LeadBotError):
    """
    Сетевая ошибка или таймаут при обращении к ЕГРЗ или LLM

    Повторяется ограниченное число раз, затем регион пропускается
    (или уведомление строится по резервному шаблону).
    """


class RateLimitedError(TransientFetchError):
    """Превышен лимит запросов LLM-провайдера"""


class LLMTimeoutError(TransientFetchError):
    """Таймаут запроса к LLM"""


class ParseError(LeadBotError):
    """Некорректная выгрузка ЕГРЗ"""


class QuotaExhausted(LeadBotError):
    """Квота LLM-провайдера исчерпана - повторять бессмысленно"""


class LLMError(LeadBotError):
    """Прочие ошибки LLM-провайдера"""


class RecipientUnavailable(LeadBotError):
    """
    Получатель недоступен (бот заблокирован, чат не найден)

    Факт доставки не записывается, повторной отправки нет.
    """

    def __init__(self, chat_id: int, reason: str):
        self.chat_id = chat_id
        self.reason = reason
        super().__init__(f"Chat {chat_id} is unavailable: {reason}")


class DeliveryFailed(LeadBotError):
    """Временная ошибка отправки сообщения, оставшаяся после повторов"""

    def __init__(self, chat_id: int, reason: str):
        self.chat_id = chat_id
        self.reason = reason
        super().__init__(f"Failed to deliver to chat {chat_id}: {reason}")


class ConfigCorrupt(LeadBotError):
    """Не удалось разобрать конфигурацию подписок пользователя"""

    def __init__(self, user_id: int, details: str):
        self.user_id = user_id
        self.details = details
        super().__init__(f"Corrupt subscription config for user {user_id}: {details}")


class StoreUnavailable(LeadBotError):
    """Хранилище недоступно - прогон планировщика прерывается"""
