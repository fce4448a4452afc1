"""
Database engine factory.

SQLite connections get foreign key enforcement (needed for cascading
deletes). The in-memory URL shares one connection across threads so
every unit of work sees the same database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.pool import StaticPool

from talk_proposals.infrastructure.persistence.sqlalchemy.tables import metadata

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

SQLITE_NAMES = {"sqlite", "sqlite+pysqlite"}


def is_sqlite(url: str | URL) -> bool:
    return make_url(str(url)).get_backend_name() in SQLITE_NAMES


def is_in_memory_sqlite(url: str | URL) -> bool:
    u = make_url(str(url))
    return is_sqlite(u) and u.database in (None, "", ":memory:")


def make_engine(url: str | URL, *, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy Engine for the given URL.

    Args:
        url: Database connection URL (str or URL)
        echo: If True, log SQL statements

    Returns:
        Engine with backend-specific tuning applied
    """
    kwargs: dict = {"echo": echo}
    if is_in_memory_sqlite(url):
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = StaticPool
    elif is_sqlite(url):
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_engine(url, **kwargs)

    if is_sqlite(url):

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, conn_record):  # noqa: ARG001
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.close()

    return engine


def create_schema(engine: Engine) -> None:
    """Create every table that does not exist yet."""
    metadata.create_all(engine)
