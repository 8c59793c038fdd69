"""Клавиатуры бота"""

from egrz_bot.keyboards.inline import get_regions_delete_keyboard, get_users_delete_keyboard
from egrz_bot.keyboards.reply import Buttons, get_guest_keyboard, get_main_menu_keyboard


__all__ = [
    "Buttons",
    "get_guest_keyboard",
    "get_main_menu_keyboard",
    "get_regions_delete_keyboard",
    "get_users_delete_keyboard",
]
