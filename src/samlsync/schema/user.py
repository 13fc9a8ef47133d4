"""The user and group membership database tables."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import SchemaBase

__all__ = ["User", "UserGroup"]


class User(SchemaBase):
    """A local user account.

    The unique constraint on ``username`` is what prevents two concurrent
    first logins from creating the same account twice.
    """

    __tablename__ = "user"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    username: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True
    )
    real_name: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email_confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    blocked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    password: Mapped[str | None] = mapped_column(String(255))


class UserGroup(SchemaBase):
    """Membership of a user in a group."""

    __tablename__ = "user_group"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), primary_key=True
    )
    group: Mapped[str] = mapped_column(String(255), primary_key=True)
