"""Enums used in samlsync models.

Notes
-----
These are kept in a separate module because both the configuration and the
exceptions refer to them, and the configuration must not import the services.
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "RejectionReason",
    "SAMLRequirement",
]


class RejectionReason(Enum):
    """Why an authenticated assertion could not be reconciled."""

    missing_username = "missing_username"
    """The username attribute was absent or had no values."""

    missing_mail = "missing_mail"
    """The mail attribute was required but absent."""

    invalid_username = "invalid_username"
    """The username was not usable as a local username."""

    username_mismatch = "username_mismatch"
    """The directory returned an account for a different username."""

    user_not_found = "user_not_found"
    """The user does not exist and automatic creation is disabled."""

    duplicate_username = "duplicate_username"
    """Another request created the same account concurrently."""

    account_blocked = "account_blocked"
    """The local account is blocked."""


class SAMLRequirement(Enum):
    """How strictly SAML authentication is enforced.

    The members are declared from least to most strict.
    """

    lenient = "lenient"
    """SAML login is offered alongside local login."""

    login_only = "login_only"
    """SAML is the only way to log in, but anonymous access is allowed."""

    required = "required"
    """Every request must carry a SAML assertion."""

    def at_least(self, other: SAMLRequirement) -> bool:
        """Whether this requirement is at least as strict as another."""
        members = list(SAMLRequirement)
        return members.index(self) >= members.index(other)
