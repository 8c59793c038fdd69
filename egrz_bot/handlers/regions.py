"""
Обработчики управления регионами подписки
"""

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from egrz_bot.core.config import Messages
from egrz_bot.core.constants import AccessTier
from egrz_bot.decorators import handle_errors
from egrz_bot.keyboards.inline import DELETE_REGION_ACTION, get_regions_delete_keyboard
from egrz_bot.keyboards.reply import MENU_BUTTONS, Buttons, get_main_menu_keyboard
from egrz_bot.services.scheduler import TaskScheduler
from egrz_bot.services.subscription_service import SubscriptionService
from egrz_bot.states import AddRegionStates
from egrz_bot.utils.helpers import parse_callback_data


logger = logging.getLogger(__name__)

router = Router(name="regions")


@router.message(F.text == Buttons.ADD_REGION)
@handle_errors
async def btn_add_region(message: Message, state: FSMContext):
    """Запрос кода региона"""
    await state.set_state(AddRegionStates.enter_code)
    await message.answer(Messages.ASK_REGION_CODE)


@router.message(F.text == Buttons.REMOVE_REGION)
@handle_errors
async def btn_remove_region(
    message: Message,
    state: FSMContext,
    access_tier: AccessTier,
    subscription_service: SubscriptionService,
):
    """Список регионов для удаления"""
    await state.clear()
    regions = await subscription_service.get_regions(message.from_user.id)
    if not regions:
        await message.answer(
            Messages.NOTHING_TO_DELETE, reply_markup=get_main_menu_keyboard(access_tier)
        )
        return

    await message.answer(
        Messages.CHOOSE_REGION_TO_DELETE, reply_markup=get_regions_delete_keyboard(regions)
    )


@router.message(F.text == Buttons.MY_REGIONS)
@handle_errors
async def btn_my_regions(
    message: Message, state: FSMContext, subscription_service: SubscriptionService
):
    """Текущие подписки пользователя"""
    await state.clear()
    regions = await subscription_service.get_regions(message.from_user.id)
    if not regions:
        await message.answer(Messages.NO_REGIONS)
        return

    lines = "\n- ".join(region.label for region in regions)
    await message.answer(f"Ваши регионы:\n- {lines}", parse_mode=None)


@router.message(AddRegionStates.enter_code, F.text)
@handle_errors
async def process_region_code(
    message: Message,
    state: FSMContext,
    access_tier: AccessTier,
    subscription_service: SubscriptionService,
    scheduler: TaskScheduler,
):
    """
    Ввод кода региона

    После добавления сразу запускается поиск по новому региону,
    итог поиска отправляется пользователю.
    """
    text = message.text.strip()
    if text in MENU_BUTTONS:
        # Кнопка меню, недоступная на этом уровне доступа - просто выходим из ожидания
        await state.clear()
        return

    user_id = message.from_user.id
    region, added = await subscription_service.add_region(user_id, text)
    if region is None:
        await message.answer(Messages.REGION_NOT_FOUND)
        return

    await state.clear()
    if not added:
        await message.answer(f'Регион "{region.name}" уже есть в вашем списке.', parse_mode=None)
        return

    logger.info(f"User {user_id} subscribed to region {region.label}")
    await message.answer(
        f'✅ Регион "{region.name}" успешно добавлен!',
        reply_markup=get_main_menu_keyboard(access_tier),
        parse_mode=None,
    )
    await message.answer(Messages.IMMEDIATE_PARSE_STARTED)

    summary = await scheduler.trigger_immediate_parse(region, user_id)
    await message.answer(summary, parse_mode=None)


@router.callback_query(F.data.startswith(f"{DELETE_REGION_ACTION}:"))
@handle_errors
async def callback_delete_region(
    callback: CallbackQuery, subscription_service: SubscriptionService
):
    """Удаление региона по кнопке"""
    params = parse_callback_data(callback.data)["params"]
    code = params[0] if params else ""
    user_id = callback.from_user.id

    removed = await subscription_service.remove_region(user_id, code)
    if removed is not None:
        logger.info(f"User {user_id} unsubscribed from region {removed.label}")
        await callback.answer(f'Регион "{removed.label}" удален.')
    else:
        await callback.answer()

    # Обновляем клавиатуру, чтобы на ней не оставался удалённый регион
    regions = await subscription_service.get_regions(user_id)
    if regions:
        await callback.message.edit_text(
            Messages.CHOOSE_NEXT_REGION_TO_DELETE,
            reply_markup=get_regions_delete_keyboard(regions),
        )
    else:
        await callback.message.edit_text(Messages.ALL_REGIONS_DELETED)
