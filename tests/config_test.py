"""Test configuration parsing."""

from __future__ import annotations

import copy
import re
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from samlsync.config import Config
from samlsync.models.enums import SAMLRequirement

from .support.config import config_path


def parse_config(path: Path) -> Config:
    """Parse the configuration file and see if any exceptions are thrown.

    Parameters
    ----------
    path
        The path to the configuration file to test.
    """
    with path.open("r") as f:
        return Config.model_validate(yaml.safe_load(f))


def test_config_base() -> None:
    config = parse_config(config_path("base"))
    assert config.username_attr == "uid"
    assert config.realname_attr == "cn"
    assert config.mail_attr == "mail"
    assert config.create_users_automatically
    assert not config.confirm_synced_email
    assert config.block_disables_login
    assert config.requirement == SAMLRequirement.lenient
    assert list(config.group_rules) == ["admin", "alumni"]
    assert config.group_rules["admin"].attributes == {"role": {"it"}}
    assert not config.group_rules["admin"].add_only
    assert config.group_rules["alumni"].add_only
    pattern = config.group_regex_rules["power"].attributes["dept"]
    assert isinstance(pattern, re.Pattern)
    assert pattern.pattern == "^eng.*"
    assert config.service_provider
    assert config.service_provider.return_parameter == "return"
    assert config.service_provider.attribute_separator == ";"
    assert config.service_provider.header_prefix is None


def test_config_legacy() -> None:
    config = parse_config(config_path("legacy"))
    assert config.create_users_automatically
    assert config.confirm_synced_email
    assert config.realname_attr is None
    assert config.post_logout_redirect is None
    assert config.service_provider is None
    assert config.database_url is None


def test_config_empty_values() -> None:
    data = {
        "usernameAttr": "uid",
        "realnameAttr": "",
        "mailAttr": "",
        "serviceProvider": {"loginUrl": "", "logoutUrl": ""},
    }
    original = copy.deepcopy(data)
    config = Config.model_validate(data)
    assert config.realname_attr is None
    assert config.mail_attr is None
    assert config.service_provider is None
    assert data == original


def test_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "SAMLSYNC_DATABASE_URL", "postgresql://other@db.example.com/wiki"
    )
    monkeypatch.setenv("SAMLSYNC_DATABASE_PASSWORD", "some-password")
    config = parse_config(config_path("base"))
    assert "db.example.com" in str(config.database_url)
    assert config.database_password
    assert config.database_password.get_secret_value() == "some-password"


def test_config_bad_regex() -> None:
    with pytest.raises(ValidationError):
        parse_config(config_path("bad-regex"))


def test_config_mail_required() -> None:
    config = parse_config(config_path("mail-required"))
    assert config.mail_required
    with pytest.raises(ValidationError, match="mailAttr is not"):
        parse_config(config_path("mail-required-no-attr"))


def test_config_unknown_key() -> None:
    with pytest.raises(ValidationError):
        parse_config(config_path("unknown-key"))


def test_config_no_username() -> None:
    with pytest.raises(ValidationError):
        parse_config(config_path("no-username"))


def test_config_attribute_spaces() -> None:
    with pytest.raises(ValidationError, match="surrounding spaces"):
        Config.model_validate({"usernameAttr": " uid"})


def test_requirement_order() -> None:
    assert SAMLRequirement.required.at_least(SAMLRequirement.login_only)
    assert SAMLRequirement.login_only.at_least(SAMLRequirement.login_only)
    assert not SAMLRequirement.lenient.at_least(SAMLRequirement.login_only)
