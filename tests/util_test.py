"""Tests for utility functions."""

from __future__ import annotations

import pytest

from samlsync.util import (
    canonicalize_username,
    is_usable_username,
    random_128_bits,
    unusable_password,
)


@pytest.mark.parametrize(
    ("raw", "canonical"),
    [
        ("alice", "Alice"),
        ("ada_lovelace", "Ada lovelace"),
        ("  bob  ", "Bob"),
        ("some__user name", "Some user name"),
        ("Élodie", "Élodie"),
        ("_", ""),
    ],
)
def test_canonicalize_username(raw: str, canonical: str) -> None:
    assert canonicalize_username(raw) == canonical


def test_is_usable_username() -> None:
    assert is_usable_username("Alice")
    assert is_usable_username("Ada lovelace")
    assert not is_usable_username("")
    assert not is_usable_username("Alice@example.com")
    assert not is_usable_username("Foo/bar")
    assert not is_usable_username("A[b]")
    assert not is_usable_username("Tab\there")
    assert not is_usable_username("192.0.2.1")
    assert not is_usable_username("2001:db8::1")
    assert not is_usable_username("A" * 256)
    assert is_usable_username("A" * 255)
    assert not is_usable_username("Admin", reserved=["admin"])
    assert is_usable_username("Alice", reserved=["admin"])


def test_random_128_bits() -> None:
    random = random_128_bits()
    assert len(random) == 22
    assert random_128_bits() != random


def test_unusable_password() -> None:
    password = unusable_password()
    assert password.startswith("!")
    assert len(password) == 23
