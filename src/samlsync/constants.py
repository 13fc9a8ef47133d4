"""Constants for samlsync."""

__all__ = [
    "ATTRIBUTE_SEPARATOR",
    "CONFIG_PATH",
    "INVALID_USERNAME_CHARACTERS",
    "UNUSABLE_PASSWORD_PREFIX",
    "USERNAME_MAX_BYTES",
]

ATTRIBUTE_SEPARATOR = ";"
"""Default separator for multi-valued attributes exported as variables.

This matches the default used by the Shibboleth service provider and
mod_auth_mellon when a SAML attribute has more than one value.
"""

CONFIG_PATH = "/etc/samlsync/samlsync.yaml"
"""Default configuration path."""

INVALID_USERNAME_CHARACTERS = frozenset("#<>[]|{}/@:")
"""Characters that may not appear in a local username.

These are the characters that are not legal in page titles plus the
characters reserved for interwiki and external user references.
"""

UNUSABLE_PASSWORD_PREFIX = "!"
"""Prefix marking a local credential that can never match a password.

No password hash starts with this character, so an account whose credential
starts with it cannot log in with a password and must always authenticate
through the identity provider.
"""

USERNAME_MAX_BYTES = 255
"""Maximum length of a username in bytes when encoded in UTF-8."""
