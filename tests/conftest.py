"""Test fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from samlsync.config import Config
from samlsync.database import initialize_samlsync_database
from samlsync.factory import Factory

from .support.config import configure
from .support.database import create_sqlite_engine
from .support.directory import MockDirectory


@pytest.fixture
def config() -> Config:
    """Set up and return the default test configuration.

    Notes
    -----
    This fixture must not be async so that it can be used by the cli tests,
    which must not be async because the Click support starts its own asyncio
    loop.
    """
    return configure("base")


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of an empty SQLite database private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'samlsync.sqlite'}"


@pytest_asyncio.fixture
async def engine(database_url: str) -> AsyncIterator[AsyncEngine]:
    """Create a database engine with an initialized schema.

    The test suite uses SQLite so that it does not need a PostgreSQL server.
    The schema is portable between the two.
    """
    engine = create_sqlite_engine(database_url)
    logger = structlog.get_logger("samlsync")
    await initialize_samlsync_database(engine, logger, reset=True)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def factory(
    config: Config, engine: AsyncEngine
) -> AsyncIterator[Factory]:
    """Return a component factory using the test database."""
    async with Factory.standalone(config, engine) as factory:
        yield factory


@pytest.fixture
def directory() -> MockDirectory:
    """Return an empty in-memory user directory."""
    return MockDirectory()
