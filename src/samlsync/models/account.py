"""Models for local user accounts."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = ["LocalAccount"]


@dataclass
class LocalAccount:
    """A user account in the local user directory.

    Reconciliation mutates this object in place and then persists it at most
    once through the user directory.
    """

    username: str
    """Canonical username."""

    id: int | None = None
    """Directory identifier, or `None` if the account is not yet created."""

    real_name: str = ""
    """Preferred full name."""

    email: str = ""
    """Email address."""

    email_confirmed: bool = False
    """Whether the email address has been confirmed."""

    groups: set[str] = field(default_factory=set)
    """Names of the groups of which the user is a member."""

    blocked: bool = False
    """Whether the account is blocked."""

    password: str | None = None
    """Local credential, which is unusable for accounts created by SAML."""

    @property
    def is_new(self) -> bool:
        """Whether the account has not been created in the directory yet."""
        return self.id is None
