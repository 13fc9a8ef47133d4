"""Base class for SAML assertion services."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod

from ..models.attributes import AttributeBag

__all__ = ["AssertionService"]


class AssertionService(metaclass=ABCMeta):
    """Abstract base class for SAML assertion services.

    An assertion service wraps whatever handles the SAML protocol for the
    current request and exposes the authenticated assertion, if any. One
    instance is created per request.
    """

    @abstractmethod
    async def is_authenticated(self) -> bool:
        """Whether the current request carries a valid assertion."""

    @abstractmethod
    async def get_attributes(self) -> AttributeBag:
        """Get the attributes of the current assertion.

        Returns
        -------
        AttributeBag
            Attributes released by the identity provider.

        Raises
        ------
        AssertionServiceError
            Raised if there is no assertion or its attributes could not be
            retrieved.
        """

    @abstractmethod
    async def require_auth(self, return_url: str | None = None) -> None:
        """Require an assertion, starting SAML login if there is none.

        Parameters
        ----------
        return_url
            Where to send the user after login.

        Raises
        ------
        AuthenticationRequiredError
            Raised if there is no assertion and the service cannot redirect
            the user itself.
        """

    @abstractmethod
    async def logout(self, return_url: str | None = None) -> None:
        """End the SAML session.

        Parameters
        ----------
        return_url
            Where to send the user after logout.
        """

    @abstractmethod
    def get_login_url(self, return_url: str | None = None) -> str:
        """Get the URL that starts SAML login.

        Parameters
        ----------
        return_url
            Where to send the user after login.

        Returns
        -------
        str
            The login URL.
        """

    @abstractmethod
    def get_logout_url(self, return_url: str | None = None) -> str:
        """Get the URL that ends the SAML session.

        Parameters
        ----------
        return_url
            Where to send the user after logout.

        Returns
        -------
        str
            The logout URL.
        """
