"""Configuration for samlsync.

samlsync is configured by a YAML file whose keys use camel case. Settings
that are deployment-specific or secret, such as the database connection, may
also be set via environment variables with the ``SAMLSYNC_`` prefix. Only the
settings with explicit ``validation_alias`` settings support configuration via
environment variable.

The reconciliation policy is the core of the configuration: which attributes
hold the username, real name, and email address, whether missing accounts are
created, and which attribute values grant membership in which groups.
"""

from __future__ import annotations

from pathlib import Path
from re import Pattern
from typing import Any, Self, override

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging
from safir.pydantic import EnvAsyncPostgresDsn

from .constants import ATTRIBUTE_SEPARATOR
from .models.enums import SAMLRequirement

__all__ = [
    "CamelCaseSettings",
    "Config",
    "EnvFirstSettings",
    "GroupRegexRule",
    "GroupRule",
    "ServiceProviderConfig",
]


class CamelCaseSettings(BaseSettings):
    """Base class for Pydantic settings supporting camel-case.

    This base class also forbids all extra attributes. It should be used as
    the base class (possibly indirectly) for all samlsync configuration
    models that support environment variable overrides.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )


class EnvFirstSettings(CamelCaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file and we want environment variables to
        take precedence.
        """
        return (env_settings, init_settings)


class GroupRule(BaseModel):
    """Grant a group when an attribute has one of a list of values."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )

    attributes: dict[str, set[str]] = Field(
        ...,
        title="Accepted values by attribute",
        description=(
            "Mapping of attribute names to the values that grant the group."
            " Attributes are checked in order and the first one that matches"
            " grants the group."
        ),
        examples=[{"eduPersonAffiliation": ["staff", "faculty"]}],
    )

    add_only: bool = Field(
        False,
        title="Never remove the group",
        description=(
            "If set, a non-matching attribute leaves group membership alone"
            " instead of removing the group"
        ),
    )


class GroupRegexRule(BaseModel):
    """Grant a group when an attribute value matches a regular expression."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )

    attributes: dict[str, Pattern[str]] = Field(
        ...,
        title="Patterns by attribute",
        description=(
            "Mapping of attribute names to regular expressions. A value"
            " matches if the expression matches anywhere in it, so anchor"
            " the expression to match the whole value."
        ),
        examples=[{"department": "^eng"}],
    )

    add_only: bool = Field(
        False,
        title="Never remove the group",
        description=(
            "If set, a non-matching attribute leaves group membership alone"
            " instead of removing the group"
        ),
    )


class ServiceProviderConfig(CamelCaseSettings):
    """Configuration for a SAML service provider that exports attributes.

    Used by `~samlsync.providers.environ.EnvironAssertionService` for
    service providers such as the Shibboleth SP or mod_auth_mellon that
    handle the SAML protocol in the web server and pass the released
    attributes to the application as request variables.
    """

    login_url: HttpUrl = Field(
        ...,
        title="Login handler URL",
        description="URL of the service provider handler that starts login",
        examples=["https://wiki.example.com/Shibboleth.sso/Login"],
    )

    logout_url: HttpUrl = Field(
        ...,
        title="Logout handler URL",
        description="URL of the service provider handler that logs out",
        examples=["https://wiki.example.com/Shibboleth.sso/Logout"],
    )

    return_parameter: str = Field(
        "return",
        title="Return URL parameter",
        description="Query parameter of the handlers holding the return URL",
    )

    attribute_separator: str = Field(
        ATTRIBUTE_SEPARATOR,
        title="Multi-value separator",
        description="Separator between values of multi-valued attributes",
        min_length=1,
    )

    environ_prefix: str = Field(
        "",
        title="Attribute variable prefix",
        description=(
            "Prefix of the request variables holding attributes, which is"
            " removed to get the attribute name. Variables without the prefix"
            " are ignored. Set this whenever the service provider supports"
            " it, so that ordinary server variables are never mistaken for"
            " attributes."
        ),
        examples=["MELLON_", "AJP_"],
    )

    header_prefix: str | None = Field(
        None,
        title="Trusted header prefix",
        description=(
            "If set, attributes are also read from HTTP request headers with"
            " this prefix. Only enable this if a trusted proxy strips these"
            " headers from client requests."
        ),
        examples=["X-SAML-"],
    )


class Config(EnvFirstSettings):
    """Configuration for samlsync."""

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
        validation_alias=AliasChoices("SAMLSYNC_LOG_LEVEL", "logLevel"),
    )

    log_profile: Profile = Field(
        Profile.production,
        title="Logging profile",
        description=(
            "``production`` emits JSON logs, ``development`` emits logs"
            " formatted for humans"
        ),
        validation_alias=AliasChoices("SAMLSYNC_LOG_PROFILE", "logProfile"),
    )

    database_url: EnvAsyncPostgresDsn | None = Field(
        None,
        title="Database DSN",
        description="DSN for the PostgreSQL database holding user accounts",
        validation_alias=AliasChoices(
            "SAMLSYNC_DATABASE_URL", "databaseUrl"
        ),
    )

    database_password: SecretStr | None = Field(
        None,
        title="Database password",
        description="Password for the PostgreSQL database",
        validation_alias=AliasChoices(
            "SAMLSYNC_DATABASE_PASSWORD", "databasePassword"
        ),
    )

    requirement: SAMLRequirement = Field(
        SAMLRequirement.lenient,
        title="SAML requirement",
        description=(
            "``lenient`` allows local logins next to SAML, ``login_only``"
            " makes SAML the only login method, and ``required`` demands a"
            " SAML assertion for every request"
        ),
    )

    post_logout_redirect: HttpUrl | None = Field(
        None,
        title="Destination URL after logout",
        description="URL to which to send the user after SAML logout",
    )

    service_provider: ServiceProviderConfig | None = Field(
        None,
        title="Service provider configuration",
        description=(
            "Settings for reading assertions exported by a SAML service"
            " provider in the web server"
        ),
    )

    username_attr: str = Field(
        ...,
        title="Username attribute",
        description="SAML attribute containing the username",
        examples=["uid"],
        min_length=1,
    )

    realname_attr: str | None = Field(
        None,
        title="Real name attribute",
        description=(
            "SAML attribute containing the real name. If not set, the real"
            " name is not synchronized."
        ),
        examples=["cn"],
    )

    mail_attr: str | None = Field(
        None,
        title="Email attribute",
        description=(
            "SAML attribute containing the email address. If not set, the"
            " email address is not synchronized."
        ),
        examples=["mail"],
    )

    mail_required: bool = Field(
        False,
        title="Require email attribute",
        description=(
            "Refuse login if ``mailAttr`` is set but the assertion does not"
            " contain it"
        ),
    )

    create_users_automatically: bool = Field(
        False,
        title="Create missing users",
        description=(
            "Create a local account for users who do not have one yet. If"
            " not set, only users with an existing account can log in."
        ),
        validation_alias=AliasChoices(
            "createUsersAutomatically", "autoCreate"
        ),
    )

    confirm_synced_email: bool = Field(
        False,
        title="Confirm synchronized email",
        description=(
            "Mark email addresses taken from the assertion as confirmed"
        ),
        validation_alias=AliasChoices(
            "confirmSyncedEmail", "autoMailConfirm"
        ),
    )

    block_disables_login: bool = Field(
        True,
        title="Blocks disable login",
        description="Refuse login to blocked local accounts",
    )

    reserved_usernames: list[str] = Field(
        [],
        title="Reserved usernames",
        description=(
            "Usernames that may never be used by a SAML login, compared after"
            " canonicalization"
        ),
    )

    group_rules: dict[str, GroupRule] = Field(
        {},
        title="Group rules",
        description=(
            "Mapping of group names to the attribute values that grant them."
            " Evaluated before ``groupRegexRules``."
        ),
    )

    group_regex_rules: dict[str, GroupRegexRule] = Field(
        {},
        title="Group regex rules",
        description=(
            "Mapping of group names to the attribute patterns that grant"
            " them. Evaluated after ``groupRules``, so a group listed in both"
            " is decided by these rules whenever they apply."
        ),
    )

    @field_validator("username_attr", "realname_attr", "mail_attr")
    @classmethod
    def _validate_attribute_name(cls, v: str | None) -> str | None:
        if v is not None and v != v.strip():
            raise ValueError(f"attribute name {v!r} has surrounding spaces")
        return v

    @model_validator(mode="before")
    @classmethod
    def _validate_optional(cls, data: Any) -> Any:
        """Remove sub-models and attributes that are not configured.

        Helm-style configuration files always carry every key, with empty
        strings for unused settings. Treat an empty string the same as an
        absent setting.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("realnameAttr", "mailAttr", "postLogoutRedirect"):
            if data.get(key) == "":
                del data[key]
        sp = data.get("serviceProvider")
        if isinstance(sp, dict) and not sp.get("loginUrl"):
            del data["serviceProvider"]
        return data

    @model_validator(mode="after")
    def _validate_mail_required(self) -> Self:
        if self.mail_required and not self.mail_attr:
            raise ValueError("mailRequired is set but mailAttr is not")
        return self

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a Config object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        Config
            The corresponding `Config` object.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f))

    def configure_logging(self) -> None:
        """Configure logging based on the samlsync configuration."""
        configure_logging(
            name="samlsync",
            profile=self.log_profile,
            log_level=self.log_level,
        )
