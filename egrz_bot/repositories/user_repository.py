"""
Репозиторий белого списка пользователей
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from egrz_bot.database.orm_models import User


logger = logging.getLogger(__name__)


def normalize_username(username: str | None) -> str | None:
    """Username без @ и пробелов; пустая строка -> None"""
    if username is None:
        return None
    username = username.strip()
    if username.startswith("@"):
        username = username[1:]
    return username or None


class UserRepository:
    """Репозиторий для работы с пользователями белого списка"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, db_id: int) -> User | None:
        return await self.session.get(User, db_id)

    async def get_by_user_id(self, user_id: int) -> User | None:
        result = await self.session.execute(select(User).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str | None) -> User | None:
        username = normalize_username(username)
        if not username:
            return None
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def list_all(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def add_username(self, username: str) -> tuple[User, bool]:
        """
        Добавление username в белый список.

        Returns:
            (пользователь, создан ли новый)
        """
        normalized = normalize_username(username)
        if not normalized:
            raise ValueError("Username не может быть пустым")

        existing = await self.get_by_username(normalized)
        if existing:
            return existing, False

        user = User(username=normalized, user_id=None)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user, True

    async def activate(self, username: str | None, user_id: int) -> User | None:
        """
        Активация ожидающего пользователя: запоминаем его Telegram ID.

        Returns:
            Пользователь, если он был в списке ожидания и активирован, иначе None
        """
        user = await self.get_by_username(username)
        if user is None or user.user_id is not None:
            return None
        user.user_id = user_id
        await self.session.commit()
        logger.info(f"Пользователь @{user.username} активирован (id={user_id})")
        return user

    async def delete(self, db_id: int) -> bool:
        result = await self.session.execute(delete(User).where(User.id == db_id))
        await self.session.commit()
        return (result.rowcount or 0) > 0
