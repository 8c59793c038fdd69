"""
SQLAlchemy ORM модели для базы данных
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column
from sqlalchemy.sql import func


# Базовый класс для всех моделей
Base = declarative_base()


class User(Base):
    """
    Пользователь из белого списка

    Администратор добавляет username, Telegram ID заполняется,
    когда пользователь сам нажимает /start (активация).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, unique=True, nullable=True)
    username: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_users_username", "username"),)

    @property
    def is_activated(self) -> bool:
        return self.user_id is not None

    def get_display_name(self) -> str:
        """Получение отображаемого имени"""
        if self.username:
            return f"@{self.username}"
        return f"User #{self.user_id}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, user_id={self.user_id}, username={self.username})>"


class Subscription(Base):
    """Подписки пользователя на регионы (JSON-конфигурация)"""

    __tablename__ = "configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    config_data: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Subscription(user_id={self.user_id})>"


class ProcessedLead(Base):
    """Кеш готовых уведомлений по номеру заключения"""

    __tablename__ = "processed_leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conclusion_number: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    processed_message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ProcessedLead(conclusion_number={self.conclusion_number})>"


class DeliveryRecord(Base):
    """Факт отправки записи пользователю - единственный признак дедупликации"""

    __tablename__ = "delivery_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    conclusion_number: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "conclusion_number", name="uq_delivery_user_conclusion"),
        Index("idx_delivery_conclusion_number", "conclusion_number"),
    )

    def __repr__(self) -> str:
        return (
            f"<DeliveryRecord(user_id={self.user_id}, "
            f"conclusion_number={self.conclusion_number})>"
        )
