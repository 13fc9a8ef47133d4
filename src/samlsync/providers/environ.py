"""Assertion service for attributes exported by a SAML service provider."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urlencode

from structlog.stdlib import BoundLogger

from ..config import ServiceProviderConfig
from ..exceptions import AssertionServiceError, AuthenticationRequiredError
from ..models.attributes import AttributeBag, build_attribute_bag
from .base import AssertionService

__all__ = ["EnvironAssertionService"]

_CLIENT_PREFIX = "HTTP_"
"""Prefix of CGI variables copied from client request headers."""


class EnvironAssertionService(AssertionService):
    """Read an assertion from the variables of the current request.

    Web server SAML service providers such as the Shibboleth SP and
    mod_auth_mellon handle the SAML protocol themselves and pass the
    attributes of the assertion to the application as request environment
    variables, or as HTTP headers when the application is behind a proxy.
    Multi-valued attributes are joined with a separator. Variables copied
    from client request headers, whose names start with ``HTTP_``, are never
    read as attributes.

    The assertion is considered present if the username attribute is set.
    Login and logout are handled by the service provider, so this class only
    builds the URLs of its handlers. After `logout`, the assertion is ignored
    for the rest of the request, and the caller must send the user to
    `get_logout_url` to end the service provider session.

    Parameters
    ----------
    config
        Configuration of the service provider handlers.
    username_attr
        Name of the attribute holding the username.
    environ
        Request environment, such as the WSGI or ASGI scope variables.
    headers
        Request headers, consulted only if ``config.header_prefix`` is set.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: ServiceProviderConfig,
        username_attr: str,
        environ: Mapping[str, str],
        headers: Mapping[str, str] | None = None,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._username_attr = username_attr
        self._environ = environ
        self._headers = headers or {}
        self._logger = logger
        self._logged_out = False

    async def is_authenticated(self) -> bool:
        if self._logged_out:
            return False
        return self._get_raw(self._username_attr) is not None

    async def get_attributes(self) -> AttributeBag:
        if not await self.is_authenticated():
            raise AssertionServiceError("No SAML assertion for this request")
        raw: dict[str, list[str]] = {}
        environ_prefix = self._config.environ_prefix
        for key, value in self._environ.items():
            if key.startswith(_CLIENT_PREFIX):
                continue
            if key.startswith(environ_prefix):
                raw[key[len(environ_prefix) :]] = self._split(value)
        prefix = self._config.header_prefix
        if prefix:
            prefix = prefix.lower()
            for key, value in self._headers.items():
                if key.lower().startswith(prefix):
                    name = key[len(prefix) :]
                    raw.setdefault(name, self._split(value))
        return build_attribute_bag(raw)

    async def require_auth(self, return_url: str | None = None) -> None:
        if not await self.is_authenticated():
            raise AuthenticationRequiredError(self.get_login_url(return_url))

    async def logout(self, return_url: str | None = None) -> None:
        self._logged_out = True
        self._logger.info(
            "Logged out of SAML", logout_url=self.get_logout_url(return_url)
        )

    def get_login_url(self, return_url: str | None = None) -> str:
        return self._build_url(str(self._config.login_url), return_url)

    def get_logout_url(self, return_url: str | None = None) -> str:
        return self._build_url(str(self._config.logout_url), return_url)

    def _build_url(self, base: str, return_url: str | None) -> str:
        if not return_url:
            return base
        params = urlencode({self._config.return_parameter: return_url})
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{params}"

    def _get_raw(self, name: str) -> str | None:
        """Get the unsplit value of an attribute, if it is non-empty."""
        env_key = self._config.environ_prefix + name
        value: str | None = None
        if not env_key.startswith(_CLIENT_PREFIX):
            value = self._environ.get(env_key)
        if not value and self._config.header_prefix:
            header = (self._config.header_prefix + name).lower()
            for key, candidate in self._headers.items():
                if key.lower() == header:
                    value = candidate
                    break
        return value or None

    def _split(self, value: str) -> list[str]:
        """Split a multi-valued attribute, dropping empty values."""
        separator = self._config.attribute_separator
        return [v for v in (p.strip() for p in value.split(separator)) if v]
