"""
Обработчики администратора: белый список пользователей
"""

import logging

from aiogram import Bot, F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from egrz_bot.core.config import Messages
from egrz_bot.core.constants import AccessTier
from egrz_bot.decorators import handle_errors
from egrz_bot.filters import IsAdmin
from egrz_bot.keyboards.inline import DELETE_USER_ACTION, get_users_delete_keyboard
from egrz_bot.keyboards.reply import MENU_BUTTONS, Buttons
from egrz_bot.services.user_service import UserService
from egrz_bot.states import AddUserStates
from egrz_bot.utils.helpers import escape_html, parse_callback_data


logger = logging.getLogger(__name__)

router = Router(name="admin")


@router.message(F.text == Buttons.ADD_USER, IsAdmin())
@handle_errors
async def btn_add_user(message: Message, state: FSMContext):
    """Запрос username нового пользователя"""
    await state.set_state(AddUserStates.enter_username)
    await message.answer(Messages.ASK_USERNAME)


@router.message(AddUserStates.enter_username, F.text, IsAdmin())
@handle_errors
async def process_username(message: Message, state: FSMContext, user_service: UserService):
    """Добавление username в белый список"""
    text = message.text.strip()
    if text in MENU_BUTTONS:
        await state.clear()
        return

    try:
        user, created = await user_service.add_username(text)
    except ValueError:
        await message.answer(Messages.EMPTY_USERNAME)
        return

    await state.clear()
    name = escape_html(user.get_display_name())
    if created:
        logger.info(
            f"[ADMIN] Администратор {message.from_user.id} добавил {user.get_display_name()} "
            f"в список ожидания"
        )
        await message.answer(
            f"✅ Пользователь {name} добавлен в белый список.\n\n"
            "❗️Теперь этот пользователь должен сам найти бот и нажать /start, "
            "чтобы активировать доступ."
        )
    else:
        await message.answer(f"Пользователь {name} уже был в списке.")


@router.message(F.text == Buttons.LIST_USERS, IsAdmin())
@handle_errors
async def btn_list_users(message: Message, state: FSMContext, user_service: UserService):
    """Список пользователей с кнопками удаления"""
    await state.clear()
    users = await user_service.list_users()
    if not users:
        await message.answer(Messages.NO_USERS)
        return
    await message.answer(
        Messages.CHOOSE_USER_TO_DELETE, reply_markup=get_users_delete_keyboard(users)
    )


@router.callback_query(F.data.startswith(f"{DELETE_USER_ACTION}:"))
@handle_errors
async def callback_delete_user(
    callback: CallbackQuery,
    bot: Bot,
    access_tier: AccessTier,
    user_service: UserService,
):
    """Удаление пользователя из белого списка (id записи в БД, не Telegram ID)"""
    if not access_tier.is_admin:
        await callback.answer(Messages.ADMIN_ONLY, show_alert=True)
        return

    params = parse_callback_data(callback.data)["params"]
    try:
        db_id = int(params[0])
    except (IndexError, ValueError):
        logger.error(f"[ADMIN] Невалидный ID для удаления в callback_data: {callback.data}")
        await callback.answer("Ошибка: неверный ID пользователя.")
        return

    deleted = await user_service.delete_user(db_id)
    if deleted is None:
        await callback.answer(Messages.USER_ALREADY_DELETED)
        await callback.message.edit_text("Пользователь уже был удален.")
        return

    display_name = deleted.get_display_name()
    logger.info(
        f"[ADMIN] Администратор {callback.from_user.id} удалил {display_name} (DB ID: {db_id})"
    )
    await callback.answer(f"Пользователь {display_name} удален.")

    # Уведомляем только активированных пользователей
    if deleted.user_id:
        try:
            await bot.send_message(deleted.user_id, Messages.ACCESS_REVOKED)
        except TelegramAPIError as e:
            logger.warning(
                f"[ADMIN] Не удалось уведомить пользователя {deleted.user_id} об удалении: {e}"
            )

    remaining = await user_service.list_users()
    if remaining:
        await callback.message.edit_text(
            Messages.CHOOSE_NEXT_USER_TO_DELETE,
            reply_markup=get_users_delete_keyboard(remaining),
        )
    else:
        await callback.message.edit_text(Messages.ALL_USERS_DELETED)
