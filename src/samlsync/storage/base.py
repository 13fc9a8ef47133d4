"""Base class for user directories."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod

from ..models.account import LocalAccount

__all__ = ["UserDirectory"]


class UserDirectory(metaclass=ABCMeta):
    """Abstract base class for the local user directory.

    Group membership is part of `~samlsync.models.account.LocalAccount` and
    is stored by `create` and `save` along with the rest of the account.
    """

    @abstractmethod
    async def find_by_name(self, username: str) -> int | None:
        """Look up an account by its canonical username.

        Parameters
        ----------
        username
            Canonical username.

        Returns
        -------
        int or None
            Identifier of the account, or `None` if there is none.

        Raises
        ------
        DirectoryError
            Raised if the directory could not be searched.
        """

    @abstractmethod
    async def load(self, account_id: int) -> LocalAccount:
        """Load an account and its group memberships.

        Parameters
        ----------
        account_id
            Identifier of the account.

        Returns
        -------
        LocalAccount
            The account.

        Raises
        ------
        DirectoryError
            Raised if the account does not exist or could not be read.
        """

    @abstractmethod
    async def create(self, account: LocalAccount) -> int:
        """Create a new account.

        Parameters
        ----------
        account
            The account to create. Its ``id`` must be `None`.

        Returns
        -------
        int
            Identifier of the new account. The ``id`` of ``account`` is also
            set to this value.

        Raises
        ------
        DirectoryError
            Raised if the account could not be stored.
        DuplicateUsernameError
            Raised if an account with that username already exists.
        """

    @abstractmethod
    async def save(self, account: LocalAccount) -> None:
        """Store changes to an existing account.

        Parameters
        ----------
        account
            The account to store.

        Raises
        ------
        DirectoryError
            Raised if the account could not be stored.
        """
