"""Create samlsync components."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import aclosing, asynccontextmanager
from typing import Self

import structlog
from safir.database import create_async_session
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from structlog.stdlib import BoundLogger

from .config import Config
from .exceptions import NotConfiguredError
from .handlers import HandlerRegistry, SAMLSessionHandler
from .providers.base import AssertionService
from .providers.environ import EnvironAssertionService
from .schema import User as SQLUser
from .services.attributes import AttributeExtractor
from .services.groups import GroupMembershipEvaluator
from .services.reconcile import ReconciliationService
from .storage.base import UserDirectory
from .storage.directory import UserDirectoryStore

__all__ = ["Factory"]


class Factory:
    """Build samlsync components.

    Uses the contents of the configuration to construct the components
    needed to reconcile SAML assertions. The factory holds a database
    session, so one factory should be used per request or job.

    Parameters
    ----------
    config
        samlsync configuration.
    session
        Database session.
    logger
        Logger to use for errors.
    """

    @classmethod
    async def create(
        cls, config: Config, engine: AsyncEngine, *, check_db: bool = False
    ) -> Self:
        """Create a component factory outside of a request.

        If an async context manager can be used, call `standalone` rather than
        this method.

        Parameters
        ----------
        config
            samlsync configuration.
        engine
            Database engine to use for connections.
        check_db
            If set to `True`, check database connectivity before returning by
            doing a simple query.

        Returns
        -------
        Factory
            Newly-created factory. The caller must call `aclose` on the
            returned object during shutdown.
        """
        logger = structlog.get_logger("samlsync")
        statement = select(SQLUser.id).limit(1) if check_db else None
        session = await create_async_session(engine, statement=statement)
        return cls(config, session, logger)

    @classmethod
    @asynccontextmanager
    async def standalone(
        cls, config: Config, engine: AsyncEngine, *, check_db: bool = False
    ) -> AsyncIterator[Self]:
        """Async context manager for samlsync components.

        Intended for command-line tools and background jobs.

        Parameters
        ----------
        config
            samlsync configuration.
        engine
            Database engine to use for connections.
        check_db
            If set to `True`, check database connectivity before returning by
            doing a simple query.

        Yields
        ------
        Factory
            The factory. Must be used as an async context manager.

        Examples
        --------
        .. code-block:: python

           async with Factory.standalone(config, engine) as factory:
               reconciler = factory.create_reconciliation_service()
               async with factory.session.begin():
                   result = await reconciler.reconcile_attributes(bag)
        """
        factory = await cls.create(config, engine, check_db=check_db)
        async with aclosing(factory):
            yield factory

    def __init__(
        self,
        config: Config,
        session: AsyncSession,
        logger: BoundLogger,
    ) -> None:
        self.session = session
        self._config = config
        self._logger = logger

    async def aclose(self) -> None:
        """Shut down the factory.

        After this method is called, the factory object is no longer valid and
        must not be used.
        """
        await self.session.close()

    def create_assertion_service(
        self,
        environ: Mapping[str, str],
        headers: Mapping[str, str] | None = None,
    ) -> AssertionService:
        """Create an assertion service for a request.

        Parameters
        ----------
        environ
            Request environment variables set by the service provider.
        headers
            Request headers.

        Returns
        -------
        AssertionService
            Assertion service for that request.

        Raises
        ------
        NotConfiguredError
            Raised if no service provider is configured.
        """
        if not self._config.service_provider:
            raise NotConfiguredError("SAML service provider not configured")
        return EnvironAssertionService(
            config=self._config.service_provider,
            username_attr=self._config.username_attr,
            environ=environ,
            headers=headers,
            logger=self._logger,
        )

    def create_handler_registry(
        self, directory: UserDirectory | None = None
    ) -> HandlerRegistry:
        """Create the registry of session event handlers.

        Parameters
        ----------
        directory
            User directory to use. Defaults to the database directory.

        Returns
        -------
        HandlerRegistry
            Registry with the SAML session handler registered.
        """
        registry = HandlerRegistry()
        registry.register(self.create_session_handler(directory))
        return registry

    def create_reconciliation_service(
        self, directory: UserDirectory | None = None
    ) -> ReconciliationService:
        """Create the service that reconciles assertions with accounts.

        Parameters
        ----------
        directory
            User directory to use. Defaults to the database directory.

        Returns
        -------
        ReconciliationService
            Newly-created reconciliation service.
        """
        return ReconciliationService(
            config=self._config,
            directory=directory or self.create_user_directory(),
            extractor=AttributeExtractor(self._config, self._logger),
            evaluator=GroupMembershipEvaluator(self._config, self._logger),
            logger=self._logger,
        )

    def create_session_handler(
        self, directory: UserDirectory | None = None
    ) -> SAMLSessionHandler:
        """Create the handler that logs users in and out with SAML."""
        return SAMLSessionHandler(
            config=self._config,
            reconciler=self.create_reconciliation_service(directory),
            logger=self._logger,
        )

    def create_user_directory(self) -> UserDirectoryStore:
        """Create the database user directory.

        Returns
        -------
        UserDirectoryStore
            User directory using the session of this factory.
        """
        return UserDirectoryStore(self.session)
