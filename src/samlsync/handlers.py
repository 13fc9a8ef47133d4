"""Handlers for session events.

The host application reports session events (a request's session being
loaded, the user logging out) to a `HandlerRegistry`, which calls every
registered handler that implements the corresponding capability, in
registration order. Handlers are registered once at startup.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from dataclasses import replace

from structlog.stdlib import BoundLogger

from .config import Config
from .models.enums import RejectionReason, SAMLRequirement
from .models.result import (
    Authenticated,
    NotAuthenticated,
    ReconciliationResult,
    Rejected,
)
from .providers.base import AssertionService
from .services.reconcile import ReconciliationService

__all__ = [
    "HandlerRegistry",
    "OnLoginUrl",
    "OnLogout",
    "OnSessionLoad",
    "SAMLSessionHandler",
    "SessionHandler",
]


class OnSessionLoad(metaclass=ABCMeta):
    """Capability of handling the loading of a request's session."""

    @abstractmethod
    async def on_session_load(
        self,
        assertion: AssertionService,
        *,
        logged_in: bool,
        return_url: str | None = None,
    ) -> ReconciliationResult:
        """Decide who the user of the current request is.

        Parameters
        ----------
        assertion
            Assertion service for the current request.
        logged_in
            Whether the user was already logged in by the host application
            or an earlier handler.
        return_url
            Where to send the user after SAML login, if login is required.

        Returns
        -------
        ReconciliationResult
            Outcome for this handler.
        """


class OnLogout(metaclass=ABCMeta):
    """Capability of handling user logout."""

    @abstractmethod
    async def on_logout(self, assertion: AssertionService) -> str | None:
        """Handle the user logging out.

        Parameters
        ----------
        assertion
            Assertion service for the current request.

        Returns
        -------
        str or None
            URL to which the user should be sent to complete logout, if any.
        """


class OnLoginUrl(metaclass=ABCMeta):
    """Capability of providing the URL at which users log in."""

    @abstractmethod
    def get_login_url(
        self, assertion: AssertionService, return_url: str | None = None
    ) -> str | None:
        """Get the login URL to show to the user, if any."""


class SAMLSessionHandler(OnSessionLoad, OnLogout, OnLoginUrl):
    """Log users in and out based on their SAML assertion.

    Parameters
    ----------
    config
        samlsync configuration.
    reconciler
        Service that reconciles assertions with local accounts.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: Config,
        reconciler: ReconciliationService,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._reconciler = reconciler
        self._logger = logger

    async def on_session_load(
        self,
        assertion: AssertionService,
        *,
        logged_in: bool,
        return_url: str | None = None,
    ) -> ReconciliationResult:
        """Log the user in from their SAML assertion.

        If the user is already logged in by other means, any SAML session is
        ended so that the two identities cannot diverge. If the assertion is
        rejected, the SAML session is also ended, so that logging in again
        may fix a transient problem. In both cases the outcome carries the
        logout URL of the assertion service, to which the caller must send
        the user. Losing a race to create the same account is retried once.

        Raises
        ------
        AuthenticationRequiredError
            Raised if SAML is required, there is no assertion, and the
            assertion service cannot redirect the user itself.
        """
        if logged_in:
            if not await assertion.is_authenticated():
                return NotAuthenticated()
            self._logger.info("Already logged in, ending SAML session")
            logout_url = await self._end_session(assertion, return_url)
            return NotAuthenticated(logout_url=logout_url)

        if self._config.requirement.at_least(SAMLRequirement.required):
            await assertion.require_auth(return_url)

        result = await self._reconciler.reconcile(assertion)
        if (
            isinstance(result, Rejected)
            and result.reason == RejectionReason.duplicate_username
        ):
            self._logger.info("Retrying login after concurrent creation")
            result = await self._reconciler.reconcile(assertion)
        if isinstance(result, Rejected):
            logout_url = await self._end_session(assertion, return_url)
            result = replace(result, logout_url=logout_url)
        return result

    async def on_logout(self, assertion: AssertionService) -> str | None:
        """End the SAML session, if any.

        Returns
        -------
        str or None
            Logout URL of the assertion service, returning to the configured
            post-logout URL, or `None` if there was no SAML session.
        """
        if not await assertion.is_authenticated():
            return None
        redirect = self._config.post_logout_redirect
        return await self._end_session(
            assertion, str(redirect) if redirect else None
        )

    def get_login_url(
        self, assertion: AssertionService, return_url: str | None = None
    ) -> str | None:
        """Get the SAML login URL if SAML replaces local login.

        With the ``lenient`` requirement, local login remains available, so
        the host keeps its own login link.
        """
        if not self._config.requirement.at_least(SAMLRequirement.login_only):
            return None
        return assertion.get_login_url(return_url)

    async def _end_session(
        self, assertion: AssertionService, return_url: str | None
    ) -> str:
        """End the SAML session and return the URL that completes it."""
        logout_url = assertion.get_logout_url(return_url)
        await assertion.logout(return_url)
        return logout_url


type SessionHandler = OnSessionLoad | OnLogout | OnLoginUrl
"""A handler implementing at least one session capability."""


class HandlerRegistry:
    """Ordered list of session event handlers."""

    def __init__(self) -> None:
        self._handlers: list[SessionHandler] = []

    def register(self, handler: SessionHandler) -> None:
        """Add a handler after all previously registered handlers."""
        self._handlers.append(handler)

    async def session_load(
        self,
        assertion: AssertionService,
        *,
        logged_in: bool = False,
        return_url: str | None = None,
    ) -> ReconciliationResult:
        """Run the session load handlers.

        Every handler is called. The first outcome other than
        `~samlsync.models.result.NotAuthenticated` is the result, and once
        a handler has authenticated the user, later handlers are told that
        the user is logged in. The first logout URL returned by any handler
        is kept in the result.

        Parameters
        ----------
        assertion
            Assertion service for the current request.
        logged_in
            Whether the host application already logged the user in.
        return_url
            Where to send the user after SAML login, if login is required.

        Returns
        -------
        ReconciliationResult
            Combined outcome of the handlers.
        """
        result: ReconciliationResult = NotAuthenticated()
        for handler in self._handlers:
            if not isinstance(handler, OnSessionLoad):
                continue
            outcome = await handler.on_session_load(
                assertion,
                logged_in=logged_in or isinstance(result, Authenticated),
                return_url=return_url,
            )
            logout_url = result.logout_url or outcome.logout_url
            if isinstance(result, NotAuthenticated):
                result = outcome
            if result.logout_url != logout_url:
                result = replace(result, logout_url=logout_url)
        return result

    async def logout(self, assertion: AssertionService) -> str | None:
        """Run the logout handlers.

        Returns
        -------
        str or None
            The first logout URL returned by a handler, if any.
        """
        logout_url = None
        for handler in self._handlers:
            if not isinstance(handler, OnLogout):
                continue
            url = await handler.on_logout(assertion)
            if logout_url is None:
                logout_url = url
        return logout_url

    def get_login_url(
        self, assertion: AssertionService, return_url: str | None = None
    ) -> str | None:
        """Get the login URL from the first handler that provides one."""
        for handler in self._handlers:
            if not isinstance(handler, OnLoginUrl):
                continue
            url = handler.get_login_url(assertion, return_url)
            if url is not None:
                return url
        return None
