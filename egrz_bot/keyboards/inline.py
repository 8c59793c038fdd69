"""
Inline клавиатуры
"""

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from egrz_bot.database.orm_models import User
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.utils.helpers import create_callback_data


DELETE_REGION_ACTION = "delete_region"
DELETE_USER_ACTION = "delete_user"


def get_regions_delete_keyboard(regions: list[RegionLabel]) -> InlineKeyboardMarkup:
    """
    Клавиатура удаления регионов

    В callback_data только код региона: название не влезает в лимит 64 байта.
    """
    builder = InlineKeyboardBuilder()
    for region in regions:
        builder.row(
            InlineKeyboardButton(
                text=f"❌ {region.label}",
                callback_data=create_callback_data(DELETE_REGION_ACTION, region.code),
            )
        )
    return builder.as_markup()


def get_users_delete_keyboard(users: list[User]) -> InlineKeyboardMarkup:
    """Клавиатура удаления пользователей из белого списка (по id записи в БД)"""
    builder = InlineKeyboardBuilder()
    for user in users:
        status = f"({user.user_id})" if user.is_activated else "(ожидает активации)"
        builder.row(
            InlineKeyboardButton(
                text=f"❌ {user.get_display_name()} {status}",
                callback_data=create_callback_data(DELETE_USER_ACTION, user.id),
            )
        )
    return builder.as_markup()
