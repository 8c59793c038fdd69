"""
Константы приложения - поля реестра, маркеры уведомлений, уровни доступа
"""

from enum import IntEnum


class RecordField:
    """Названия колонок выгрузки ЕГРЗ"""

    CONCLUSION_NUMBER = "Номер заключения экспертизы"
    CONCLUSION_DATE = "Дата заключения экспертизы"
    EXPERTISE_RESULT = (
        "Результат проведенной экспертизы (положительное или отрицательное заключение экспертизы)"
    )
    PREPARER_INFO = (
        "Сведения об индивидуальных предпринимателях и (или) юридических лицах, "
        "подготовивших проектную документацию"
    )
    DEVELOPER_INFO = "Сведения о застройщике, обеспечившем подготовку проектной документации"
    OBJECT_INFO = (
        "Наименование и адрес (местоположение) объекта капитального строительства, "
        "применительно к которому подготовлена проектная документация"
    )
    SUBJECT_RF = "Субъект РФ"


# Застройщик, при котором запись не отправляется подписчикам
DEVELOPER_NOT_REQUIRED = "не требуется"

# Служебная строка в выгрузке ЕГРЗ
REGISTRY_BANNER_MARKER = "Дата и время генерации файла:"
REGISTRY_DELIMITER = ";"

# Маркеры разделов качественного уведомления
SECTION_PREPARER = "🏙️"
SECTION_DEVELOPER = "🏠"
SECTION_OBJECT = "🏭"
CONCLUSION_LABEL = "Номер заключения экспертизы:"

REQUIRED_NOTIFICATION_MARKERS = (
    CONCLUSION_LABEL,
    SECTION_PREPARER,
    SECTION_DEVELOPER,
    SECTION_OBJECT,
)

# Фразы отказа/извинений от LLM (сравнение без учёта регистра)
REFUSAL_PHRASES = (
    "я не могу",
    "извините",
    "не удалось",
    "ошибка",
    "как ai",
    "как искусственный интеллект",
)

MIN_NOTIFICATION_LENGTH = 50

# Лимит Bot API на длину текста сообщения
MAX_NOTIFICATION_LENGTH = 4096


class AccessTier(IntEnum):
    """
    Уровень доступа пользователя к боту

    Чем больше значение, тем выше приоритет: при определении уровня
    проверки идут от ADMIN к NONE, побеждает первый совпавший.
    """

    NONE = 0
    REGISTERED = 1  # username в белом списке, /start ещё не нажат
    ACTIVATED = 2  # доступ активирован (известен Telegram ID)
    ADMIN = 3

    @property
    def can_use_bot(self) -> bool:
        """Доступ к основному меню"""
        return self >= AccessTier.ACTIVATED

    @property
    def is_admin(self) -> bool:
        """Администратор"""
        return self is AccessTier.ADMIN
