"""Outcomes of reconciling an assertion with the user directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .account import LocalAccount
from .enums import RejectionReason

__all__ = [
    "Authenticated",
    "NotAuthenticated",
    "ReconciliationResult",
    "Rejected",
]


@dataclass(frozen=True, slots=True)
class Authenticated:
    """The assertion was reconciled with a local account."""

    account: LocalAccount
    """The account, as persisted."""

    created: bool = False
    """Whether the account was created by this reconciliation."""

    changed: bool = False
    """Whether the profile or groups of an existing account were updated."""

    logout_url: str | None = None
    """URL to which the user must be sent to end their SAML session.

    Set if a SAML session was ended during session handling. The service
    provider session only ends once the user visits this URL.
    """

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for JSON output."""
        result: dict[str, Any] = {
            "status": "authenticated",
            "id": self.account.id,
            "username": self.account.username,
            "real_name": self.account.real_name,
            "email": self.account.email,
            "email_confirmed": self.account.email_confirmed,
            "groups": sorted(self.account.groups),
            "created": self.created,
            "changed": self.changed,
        }
        if self.logout_url:
            result["logout_url"] = self.logout_url
        return result


@dataclass(frozen=True, slots=True)
class NotAuthenticated:
    """No assertion is present. This is not an error."""

    logout_url: str | None = None
    """URL to which the user must be sent to end their SAML session."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for JSON output."""
        result: dict[str, Any] = {"status": "not_authenticated"}
        if self.logout_url:
            result["logout_url"] = self.logout_url
        return result


@dataclass(frozen=True, slots=True)
class Rejected:
    """An assertion is present but cannot be reconciled."""

    reason: RejectionReason
    """Why the assertion was rejected."""

    message: str
    """Human-readable explanation, suitable for logging."""

    logout_url: str | None = None
    """URL to which the user must be sent to end their SAML session.

    Set by the session handler so that the next login starts with a fresh
    assertion, which may fix a transient problem.
    """

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for JSON output."""
        result: dict[str, Any] = {
            "status": "rejected",
            "reason": self.reason.value,
            "message": self.message,
        }
        if self.logout_url:
            result["logout_url"] = self.logout_url
        return result


type ReconciliationResult = Authenticated | NotAuthenticated | Rejected
"""Any outcome of reconciliation."""
