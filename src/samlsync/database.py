"""Database utility functions for samlsync."""

from __future__ import annotations

from safir.database import create_database_engine, initialize_database
from sqlalchemy.ext.asyncio import AsyncEngine
from structlog.stdlib import BoundLogger

from .config import Config
from .exceptions import NotConfiguredError
from .schema import SchemaBase

__all__ = [
    "create_samlsync_engine",
    "initialize_samlsync_database",
]


def create_samlsync_engine(config: Config) -> AsyncEngine:
    """Create the database engine for the user directory.

    Parameters
    ----------
    config
        samlsync configuration.

    Returns
    -------
    AsyncEngine
        Newly-created engine.

    Raises
    ------
    NotConfiguredError
        Raised if no database is configured.
    """
    if not config.database_url:
        raise NotConfiguredError("databaseUrl not configured")
    return create_database_engine(
        config.database_url, config.database_password
    )


async def initialize_samlsync_database(
    engine: AsyncEngine, logger: BoundLogger, *, reset: bool = False
) -> None:
    """Create the user directory schema.

    Parameters
    ----------
    engine
        Database engine to use.
    logger
        Logger to use for status reporting.
    reset
        If set to `True`, drop all tables first, deleting all accounts.
    """
    await initialize_database(
        engine, logger, schema=SchemaBase.metadata, reset=reset
    )
