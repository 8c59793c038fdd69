"""
Проверка качества уведомления, сгенерированного LLM
"""

from egrz_bot.core.constants import (
    MAX_NOTIFICATION_LENGTH,
    MIN_NOTIFICATION_LENGTH,
    REFUSAL_PHRASES,
    REQUIRED_NOTIFICATION_MARKERS,
)


def find_validation_problem(text: str | None) -> str | None:
    """
    Причина, по которой текст не считается качественным

    Returns:
        Описание проблемы или None, если текст прошёл проверку
    """
    if not text or len(text) < MIN_NOTIFICATION_LENGTH:
        return "ответ слишком короткий"
    if len(text) > MAX_NOTIFICATION_LENGTH:
        return "ответ длиннее лимита сообщения Telegram"

    for marker in REQUIRED_NOTIFICATION_MARKERS:
        if marker not in text:
            return f"нет обязательного элемента: {marker}"

    lowered = text.lower()
    for phrase in REFUSAL_PHRASES:
        if phrase in lowered:
            return f"нежелательная фраза: {phrase}"

    return None


def is_quality_notification(text: str | None) -> bool:
    """Текст можно отправлять как полноценное уведомление и кешировать"""
    return find_validation_problem(text) is None
