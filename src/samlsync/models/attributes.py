"""Models for SAML attributes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

__all__ = [
    "AttributeBag",
    "ValidatedAttributes",
    "build_attribute_bag",
]

type AttributeBag = Mapping[str, tuple[str, ...]]
"""Attributes released by the identity provider for one assertion.

Maps attribute names to their values in the order the identity provider sent
them. Attributes without values are never present.
"""


def build_attribute_bag(raw: Mapping[str, Iterable[str]]) -> AttributeBag:
    """Build an immutable attribute bag from raw assertion attributes.

    Parameters
    ----------
    raw
        Attributes as returned by the assertion service. Values may be any
        iterable of strings.

    Returns
    -------
    AttributeBag
        Read-only mapping of attribute names to tuples of values. Empty and
        whitespace-only values are dropped, and so are attributes left with
        no values.
    """
    bag: dict[str, tuple[str, ...]] = {}
    for name, values in raw.items():
        if isinstance(values, str):
            values = (values,)
        converted = tuple(v for v in values if v.strip())
        if converted:
            bag[name] = converted
    return MappingProxyType(bag)


@dataclass(frozen=True, slots=True)
class ValidatedAttributes:
    """Identity attributes extracted from an assertion.

    The output of `~samlsync.services.attributes.AttributeExtractor`. The
    real name and email are `None` if not configured or not present in the
    assertion, which means that they should not be updated.
    """

    username: str
    """Canonical username."""

    raw_username: str
    """Username as sent by the identity provider."""

    realname: str | None = None
    """Real name, if it should be synchronized."""

    mail: str | None = None
    """Email address, if it should be synchronized."""
