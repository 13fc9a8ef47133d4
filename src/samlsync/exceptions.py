"""Exceptions for samlsync."""

from __future__ import annotations

from typing import ClassVar

from .models.enums import RejectionReason

__all__ = [
    "AccountBlockedError",
    "AssertionServiceError",
    "AuthenticationRequiredError",
    "DirectoryError",
    "DuplicateUsernameError",
    "InvalidUsernameSyntaxError",
    "MissingMailAttributeError",
    "MissingUsernameAttributeError",
    "NotConfiguredError",
    "ReconciliationError",
    "UserDoesNotExistError",
    "UsernameMismatchError",
]


class ReconciliationError(Exception):
    """An assertion is present but cannot be reconciled with an account.

    These exceptions are raised inside the reconciliation service and
    converted to a `~samlsync.models.result.Rejected` outcome before they
    reach the caller.
    """

    reason: ClassVar[RejectionReason]
    """The rejection reason reported for this error."""


class MissingUsernameAttributeError(ReconciliationError):
    """The username attribute is missing from the assertion or empty."""

    reason = RejectionReason.missing_username


class MissingMailAttributeError(ReconciliationError):
    """The mail attribute is required but missing from the assertion."""

    reason = RejectionReason.missing_mail


class InvalidUsernameSyntaxError(ReconciliationError):
    """The username from the assertion is not a usable local username."""

    reason = RejectionReason.invalid_username


class UsernameMismatchError(ReconciliationError):
    """The user directory returned an account for a different username."""

    reason = RejectionReason.username_mismatch


class UserDoesNotExistError(ReconciliationError):
    """The user does not exist and automatic creation is disabled."""

    reason = RejectionReason.user_not_found


class DuplicateUsernameError(ReconciliationError):
    """An account with this username was created concurrently.

    Raised by `~samlsync.storage.base.UserDirectory.create` when the
    uniqueness constraint on usernames is violated. The whole reconciliation
    may be retried once.
    """

    reason = RejectionReason.duplicate_username


class AccountBlockedError(ReconciliationError):
    """The local account is blocked and blocks disable login."""

    reason = RejectionReason.account_blocked


class AuthenticationRequiredError(Exception):
    """The user must authenticate with the identity provider first.

    Raised by assertion services that cannot redirect the user themselves.
    The caller is expected to send the user to ``login_url``.

    Parameters
    ----------
    login_url
        URL at which the user can start SAML authentication.
    """

    def __init__(self, login_url: str) -> None:
        super().__init__(f"Authentication required, log in at {login_url}")
        self.login_url = login_url


class AssertionServiceError(Exception):
    """The SAML assertion service failed or returned invalid data."""


class DirectoryError(Exception):
    """The user directory could not be read or updated."""


class NotConfiguredError(Exception):
    """The requested operation was not configured."""
