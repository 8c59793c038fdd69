"""
Общие обработчики: /start (активация доступа) и /cancel
"""

import logging

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from egrz_bot.core.config import Messages
from egrz_bot.core.constants import AccessTier
from egrz_bot.decorators import handle_errors
from egrz_bot.keyboards.reply import get_guest_keyboard, get_main_menu_keyboard
from egrz_bot.services.user_service import UserService


logger = logging.getLogger(__name__)

router = Router(name="common")


@router.message(CommandStart())
@handle_errors
async def cmd_start(
    message: Message,
    state: FSMContext,
    access_tier: AccessTier,
    user_service: UserService,
):
    """
    Обработчик команды /start

    Пользователь из списка ожидания (добавлен администратором по username)
    активируется: сохраняется его Telegram ID.
    """
    await state.clear()
    user = message.from_user
    is_admin = user_service.is_admin(user.id)

    activated = await user_service.activate(user.username, user.id)
    if activated is not None:
        tier = AccessTier.ADMIN if is_admin else AccessTier.ACTIVATED
        text = Messages.WELCOME_ADMIN if is_admin else Messages.WELCOME_ACTIVATED
        logger.info(f"User {user.id} activated access")
        await message.answer(text, reply_markup=get_main_menu_keyboard(tier))
        return

    if access_tier.can_use_bot:
        text = Messages.ALREADY_ADMIN if access_tier.is_admin else Messages.ALREADY_ACTIVATED
        await message.answer(text, reply_markup=get_main_menu_keyboard(access_tier))
        return

    await message.answer(Messages.NO_ACCESS, reply_markup=get_guest_keyboard())


@router.message(Command("cancel"))
@handle_errors
async def cmd_cancel(message: Message, state: FSMContext, access_tier: AccessTier):
    """Отмена текущего ожидания ввода"""
    await state.clear()
    await message.answer(Messages.ACTION_CANCELLED, reply_markup=get_main_menu_keyboard(access_tier))

