"""Support code for testing database handling."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

__all__ = ["create_sqlite_engine"]


def create_sqlite_engine(url: str) -> AsyncEngine:
    """Create an engine for a SQLite test database.

    The SQLite driver normally starts transactions lazily, which breaks
    savepoints. Take over transaction handling so that account creation
    behaves as it does with PostgreSQL.

    Parameters
    ----------
    url
        URL of the database, using the ``sqlite+aiosqlite`` driver.

    Returns
    -------
    AsyncEngine
        The new engine.
    """
    engine = create_async_engine(url)

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN")

    return engine
