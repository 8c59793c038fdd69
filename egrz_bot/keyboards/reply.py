"""
Reply клавиатуры
"""

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup
from aiogram.utils.keyboard import ReplyKeyboardBuilder

from egrz_bot.core.constants import AccessTier


class Buttons:
    """Тексты кнопок главного меню"""

    ADD_REGION = "➕ Добавить регион"
    REMOVE_REGION = "➖ Удалить регион"
    MY_REGIONS = "Мои регионы"
    ADD_USER = "➕ Добавить пользователя"
    LIST_USERS = "👥 Список пользователей"
    START = "/start"


# Нажатие любой из этих кнопок отменяет ожидание ввода
MENU_BUTTONS = frozenset(
    {
        Buttons.ADD_REGION,
        Buttons.REMOVE_REGION,
        Buttons.MY_REGIONS,
        Buttons.ADD_USER,
        Buttons.LIST_USERS,
    }
)


def get_main_menu_keyboard(tier: AccessTier) -> ReplyKeyboardMarkup:
    """
    Главное меню по уровню доступа

    Args:
        tier: Уровень доступа пользователя

    Returns:
        ReplyKeyboardMarkup (для гостей - только /start)
    """
    if not tier.can_use_bot:
        return get_guest_keyboard()

    builder = ReplyKeyboardBuilder()
    builder.row(KeyboardButton(text=Buttons.ADD_REGION), KeyboardButton(text=Buttons.REMOVE_REGION))
    builder.row(KeyboardButton(text=Buttons.MY_REGIONS))
    if tier.is_admin:
        builder.row(KeyboardButton(text=Buttons.ADD_USER), KeyboardButton(text=Buttons.LIST_USERS))
    return builder.as_markup(resize_keyboard=True)


def get_guest_keyboard() -> ReplyKeyboardMarkup:
    builder = ReplyKeyboardBuilder()
    builder.row(KeyboardButton(text=Buttons.START))
    return builder.as_markup(resize_keyboard=True)
