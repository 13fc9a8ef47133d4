"""Tests for extraction of identity attributes."""

from __future__ import annotations

import pytest
import structlog
from _pytest.logging import LogCaptureFixture

from samlsync.config import Config
from samlsync.exceptions import (
    InvalidUsernameSyntaxError,
    MissingMailAttributeError,
    MissingUsernameAttributeError,
)
from samlsync.models.attributes import ValidatedAttributes, build_attribute_bag
from samlsync.services.attributes import AttributeExtractor

from ..support.config import configure
from ..support.logging import parse_log


def create_extractor(config: Config) -> AttributeExtractor:
    return AttributeExtractor(config, structlog.get_logger("samlsync"))


def test_extract(config: Config) -> None:
    extractor = create_extractor(config)
    bag = build_attribute_bag(
        {
            "uid": ["ada_lovelace"],
            "cn": ["Ada Lovelace"],
            "mail": ["ada@example.org"],
        }
    )
    assert extractor.extract(bag) == ValidatedAttributes(
        username="Ada lovelace",
        raw_username="ada_lovelace",
        realname="Ada Lovelace",
        mail="ada@example.org",
    )


def test_extract_optional(config: Config) -> None:
    extractor = create_extractor(config)
    bag = build_attribute_bag({"uid": ["alice"]})
    assert extractor.extract(bag) == ValidatedAttributes(
        username="Alice", raw_username="alice"
    )

    config = configure("required")
    extractor = create_extractor(config)
    bag = build_attribute_bag({"uid": ["alice"], "cn": ["Alice"]})
    assert extractor.extract(bag).realname is None


def test_missing_username(config: Config) -> None:
    extractor = create_extractor(config)
    with pytest.raises(MissingUsernameAttributeError):
        extractor.extract(build_attribute_bag({"cn": ["Alice"]}))
    with pytest.raises(MissingUsernameAttributeError):
        extractor.extract(build_attribute_bag({"uid": []}))


def test_mail_required() -> None:
    config = configure("mail-required")
    extractor = create_extractor(config)
    with pytest.raises(MissingMailAttributeError):
        extractor.extract(build_attribute_bag({"uid": ["alice"]}))
    bag = build_attribute_bag({"uid": ["alice"], "mail": ["a@example.org"]})
    assert extractor.extract(bag).mail == "a@example.org"


@pytest.mark.parametrize(
    "username", ["alice@example.com", "192.0.2.1", "__", "mediaWiki_default"]
)
def test_invalid_username(config: Config, username: str) -> None:
    extractor = create_extractor(config)
    with pytest.raises(InvalidUsernameSyntaxError):
        extractor.extract(build_attribute_bag({"uid": [username]}))


def test_multivalued(config: Config, caplog: LogCaptureFixture) -> None:
    extractor = create_extractor(config)
    bag = build_attribute_bag(
        {
            "uid": ["alice", "alicia"],
            "mail": ["alice@example.org", "alicia@example.org"],
        }
    )
    caplog.clear()
    validated = extractor.extract(bag)
    assert validated.username == "Alice"
    assert validated.mail == "alice@example.org"
    assert parse_log(caplog) == [
        {
            "attribute": "uid",
            "count": 2,
            "event": (
                "Username attribute is multi-valued, using only the first"
            ),
            "level": "warning",
            "value": "alice",
        },
        {
            "attribute": "mail",
            "count": 2,
            "event": "Email attribute is multi-valued, using only the first",
            "level": "warning",
            "value": "alice@example.org",
        },
    ]
