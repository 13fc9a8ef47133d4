"""Extraction and validation of identity attributes."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import Config
from ..exceptions import (
    InvalidUsernameSyntaxError,
    MissingMailAttributeError,
    MissingUsernameAttributeError,
)
from ..models.attributes import AttributeBag, ValidatedAttributes
from ..util import canonicalize_username, is_usable_username

__all__ = ["AttributeExtractor"]


class AttributeExtractor:
    """Extract the username, real name, and email from an assertion.

    Parameters
    ----------
    config
        samlsync configuration, which says which attributes to use.
    logger
        Logger to use.
    """

    def __init__(self, config: Config, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger

    def extract(self, attributes: AttributeBag) -> ValidatedAttributes:
        """Extract and validate the identity attributes.

        Attributes with more than one value are not an error. A warning is
        logged and the first value is used.

        Parameters
        ----------
        attributes
            Attributes from the assertion.

        Returns
        -------
        ValidatedAttributes
            The canonical username plus the real name and email to
            synchronize, if any.

        Raises
        ------
        InvalidUsernameSyntaxError
            Raised if the username is not usable as a local username.
        MissingMailAttributeError
            Raised if the email attribute is required but missing.
        MissingUsernameAttributeError
            Raised if the username attribute is missing.
        """
        username_attr = self._config.username_attr
        raw_username = self._get_single("Username", username_attr, attributes)
        if raw_username is None:
            msg = f"Username attribute {username_attr} missing"
            raise MissingUsernameAttributeError(msg)

        realname = None
        if self._config.realname_attr:
            realname = self._get_single(
                "Real name", self._config.realname_attr, attributes
            )

        mail = None
        if self._config.mail_attr:
            mail_attr = self._config.mail_attr
            mail = self._get_single("Email", mail_attr, attributes)
            if mail is None and self._config.mail_required:
                msg = f"Email attribute {mail_attr} missing"
                raise MissingMailAttributeError(msg)

        username = canonicalize_username(raw_username)
        reserved = self._config.reserved_usernames
        if not is_usable_username(username, reserved):
            msg = f"Invalid username {raw_username!r}"
            raise InvalidUsernameSyntaxError(msg)

        return ValidatedAttributes(
            username=username,
            raw_username=raw_username,
            realname=realname,
            mail=mail,
        )

    def _get_single(
        self, label: str, name: str, attributes: AttributeBag
    ) -> str | None:
        """Get the first value of an attribute, warning if multi-valued."""
        values = attributes.get(name)
        if not values:
            return None
        if len(values) > 1:
            self._logger.warning(
                f"{label} attribute is multi-valued, using only the first",
                attribute=name,
                value=values[0],
                count=len(values),
            )
        return values[0]
