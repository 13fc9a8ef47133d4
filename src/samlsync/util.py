"""General utility functions."""

from __future__ import annotations

import base64
import ipaddress
import os
import re
import unicodedata
from collections.abc import Iterable

from .constants import (
    INVALID_USERNAME_CHARACTERS,
    UNUSABLE_PASSWORD_PREFIX,
    USERNAME_MAX_BYTES,
)

__all__ = [
    "canonicalize_username",
    "is_usable_username",
    "random_128_bits",
    "unusable_password",
]


def canonicalize_username(username: str) -> str:
    """Convert a username to its canonical local form.

    Underscores and spaces are equivalent in local usernames, so underscores
    are converted to spaces, surrounding whitespace is removed, runs of
    whitespace are collapsed, and the first character is capitalized. The
    rest of the name keeps its case.

    Parameters
    ----------
    username
        Username as sent by the identity provider.

    Returns
    -------
    str
        Canonical username. This may be empty if the input was only
        whitespace and underscores.
    """
    name = re.sub(r"[\s_]+", " ", username).strip()
    if not name:
        return name
    return name[0].upper() + name[1:]


def is_usable_username(
    username: str, reserved: Iterable[str] = ()
) -> bool:
    """Return whether a canonical username may be used for a local account.

    Parameters
    ----------
    username
        Canonical username, as returned by `canonicalize_username`.
    reserved
        Canonical usernames that may not be used.

    Returns
    -------
    bool
        `True` if the username is non-empty, short enough, free of invalid
        and control characters, not an IP address, and not reserved.
    """
    if not username or len(username.encode()) > USERNAME_MAX_BYTES:
        return False
    if any(c in INVALID_USERNAME_CHARACTERS for c in username):
        return False
    if any(unicodedata.category(c).startswith("C") for c in username):
        return False
    try:
        ipaddress.ip_address(username)
    except ValueError:
        pass
    else:
        return False
    return username not in {canonicalize_username(r) for r in reserved}


def random_128_bits() -> str:
    """Generate random 128 bits encoded in base64 without padding."""
    return base64.urlsafe_b64encode(os.urandom(16)).decode().rstrip("=")


def unusable_password() -> str:
    """Generate a random local credential that can never be used to log in."""
    return UNUSABLE_PASSWORD_PREFIX + random_128_bits()
