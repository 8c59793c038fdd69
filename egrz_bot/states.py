"""
FSM States для диалогов бота
"""

from aiogram.fsm.state import State, StatesGroup


class AddRegionStates(StatesGroup):
    """Добавление региона"""

    enter_code = State()  # Ввод кода региона


class AddUserStates(StatesGroup):
    """Добавление пользователя в белый список (администратор)"""

    enter_username = State()  # Ввод @username
