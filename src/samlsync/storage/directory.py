"""SQL storage layer for the local user directory."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from functools import wraps

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import DirectoryError, DuplicateUsernameError
from ..models.account import LocalAccount
from ..schema import User as SQLUser
from ..schema import UserGroup as SQLUserGroup
from .base import UserDirectory

__all__ = ["UserDirectoryStore"]


def _convert_exception[**P, T](
    f: Callable[P, Coroutine[None, None, T]],
) -> Callable[P, Coroutine[None, None, T]]:
    """Convert SQLAlchemy exceptions to `DirectoryError`."""

    @wraps(f)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await f(*args, **kwargs)
        except SQLAlchemyError as e:
            raise DirectoryError(f"User directory query failed: {e!s}") from e

    return wrapper


class UserDirectoryStore(UserDirectory):
    """Stores and retrieves local user accounts in a SQL database.

    The caller is responsible for transaction management. Account creation
    happens inside a savepoint so that losing a race with a concurrent
    creation of the same account does not abort the enclosing transaction.

    Parameters
    ----------
    session
        The database session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @_convert_exception
    async def find_by_name(self, username: str) -> int | None:
        stmt = select(SQLUser.id).where(SQLUser.username == username)
        return await self._session.scalar(stmt)

    @_convert_exception
    async def load(self, account_id: int) -> LocalAccount:
        user = await self._session.get(SQLUser, account_id)
        if not user:
            raise DirectoryError(f"User {account_id} not found")
        return LocalAccount(
            id=user.id,
            username=user.username,
            real_name=user.real_name,
            email=user.email,
            email_confirmed=user.email_confirmed,
            groups=await self._get_groups(account_id),
            blocked=user.blocked,
            password=user.password,
        )

    async def create(self, account: LocalAccount) -> int:
        if account.id is not None:
            raise DirectoryError(f"User {account.username} already created")
        new = SQLUser(
            username=account.username,
            real_name=account.real_name,
            email=account.email,
            email_confirmed=account.email_confirmed,
            blocked=account.blocked,
            password=account.password,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(new)
                await self._session.flush()
                self._session.add_all(
                    SQLUserGroup(user_id=new.id, group=g)
                    for g in sorted(account.groups)
                )
        except IntegrityError as e:
            msg = f"User {account.username} already exists"
            raise DuplicateUsernameError(msg) from e
        except SQLAlchemyError as e:
            raise DirectoryError(f"Creating user failed: {e!s}") from e
        account.id = new.id
        return new.id

    @_convert_exception
    async def save(self, account: LocalAccount) -> None:
        if account.id is None:
            raise DirectoryError(f"User {account.username} not yet created")
        user = await self._session.get(SQLUser, account.id)
        if not user:
            raise DirectoryError(f"User {account.id} not found")
        user.real_name = account.real_name
        user.email = account.email
        user.email_confirmed = account.email_confirmed
        user.blocked = account.blocked
        user.password = account.password

        current = await self._get_groups(account.id)
        removed = current - account.groups
        if removed:
            stmt = delete(SQLUserGroup).where(
                SQLUserGroup.user_id == account.id,
                SQLUserGroup.group.in_(removed),
            )
            await self._session.execute(stmt)
        self._session.add_all(
            SQLUserGroup(user_id=account.id, group=g)
            for g in sorted(account.groups - current)
        )

    async def _get_groups(self, account_id: int) -> set[str]:
        stmt = select(SQLUserGroup.group).where(
            SQLUserGroup.user_id == account_id
        )
        result = await self._session.scalars(stmt)
        return set(result.all())
