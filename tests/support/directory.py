"""In-memory user directory for testing."""

from __future__ import annotations

from dataclasses import replace

from samlsync.exceptions import DirectoryError, DuplicateUsernameError
from samlsync.models.account import LocalAccount
from samlsync.storage.base import UserDirectory

__all__ = ["MockDirectory"]


class MockDirectory(UserDirectory):
    """User directory that stores accounts in memory.

    Accounts are copied on the way in and out so that tests can tell whether
    a change was persisted. Calls to `create` and `save` are counted.

    Attributes
    ----------
    create_calls
        Number of calls to `create`.
    save_calls
        Number of calls to `save`.
    """

    def __init__(self) -> None:
        self.create_calls = 0
        self.save_calls = 0
        self._accounts: dict[int, LocalAccount] = {}
        self._next_id = 1
        self._race_username: str | None = None

    def add(self, account: LocalAccount) -> LocalAccount:
        """Add an account directly, bypassing the call counters."""
        groups = set(account.groups)
        account = replace(account, id=self._next_id, groups=groups)
        self._accounts[account.id] = account
        self._next_id += 1
        return account

    def get(self, username: str) -> LocalAccount | None:
        """Get a copy of the stored account for a username, if any."""
        for account in self._accounts.values():
            if account.username == username:
                return self._copy(account)
        return None

    def lose_race(self, username: str) -> None:
        """Simulate another request creating an account first.

        The next creation of this username adds the account as if another
        request had won the race and then fails with a duplicate error.
        """
        self._race_username = username

    async def find_by_name(self, username: str) -> int | None:
        for account in self._accounts.values():
            if account.username == username:
                return account.id
        return None

    async def load(self, account_id: int) -> LocalAccount:
        if account_id not in self._accounts:
            raise DirectoryError(f"User {account_id} not found")
        return self._copy(self._accounts[account_id])

    async def create(self, account: LocalAccount) -> int:
        self.create_calls += 1
        if account.username == self._race_username:
            self._race_username = None
            self.add(LocalAccount(username=account.username))
        if await self.find_by_name(account.username) is not None:
            msg = f"User {account.username} already exists"
            raise DuplicateUsernameError(msg)
        stored = self.add(account)
        account.id = stored.id
        return stored.id

    async def save(self, account: LocalAccount) -> None:
        self.save_calls += 1
        if account.id not in self._accounts:
            raise DirectoryError(f"User {account.id} not found")
        self._accounts[account.id] = self._copy(account)

    def _copy(self, account: LocalAccount) -> LocalAccount:
        return replace(account, groups=set(account.groups))
