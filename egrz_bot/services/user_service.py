"""
Сервис пользователей: уровни доступа и белый список
"""

import logging

from egrz_bot.core.config import Config
from egrz_bot.core.constants import AccessTier
from egrz_bot.database import ORMDatabase
from egrz_bot.database.orm_models import User
from egrz_bot.repositories import UserRepository


logger = logging.getLogger(__name__)


class UserService:
    """
    Определение уровня доступа и управление белым списком.

    Уровни проверяются по убыванию приоритета: ADMIN (id в ADMIN_IDS),
    ACTIVATED (в users есть этот Telegram ID), REGISTERED (в users есть
    username, но /start ещё не нажат), иначе NONE.
    """

    def __init__(self, db: ORMDatabase, admin_ids: list[int] | None = None):
        self.db = db
        self.admin_ids = set(Config.ADMIN_IDS if admin_ids is None else admin_ids)

    def is_admin(self, user_id: int) -> bool:
        return user_id in self.admin_ids

    async def get_access_tier(self, user_id: int, username: str | None) -> AccessTier:
        if self.is_admin(user_id):
            return AccessTier.ADMIN

        async with self.db.get_session() as session:
            repo = UserRepository(session)
            if await repo.get_by_user_id(user_id) is not None:
                return AccessTier.ACTIVATED
            if await repo.get_by_username(username) is not None:
                return AccessTier.REGISTERED
        return AccessTier.NONE

    async def activate(self, username: str | None, user_id: int) -> User | None:
        """Активация пользователя из списка ожидания по /start"""
        async with self.db.get_session() as session:
            return await UserRepository(session).activate(username, user_id)

    async def add_username(self, username: str) -> tuple[User, bool]:
        """
        Добавление в белый список

        Raises:
            ValueError: Пустой username
        """
        async with self.db.get_session() as session:
            return await UserRepository(session).add_username(username)

    async def list_users(self) -> list[User]:
        async with self.db.get_session() as session:
            return await UserRepository(session).list_all()

    async def delete_user(self, db_id: int) -> User | None:
        """
        Удаление пользователя из белого списка

        Returns:
            Удалённый пользователь или None, если его уже нет
        """
        async with self.db.get_session() as session:
            repo = UserRepository(session)
            user = await repo.get_by_id(db_id)
            if user is None:
                return None
            await repo.delete(db_id)
            return user
