"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.pool import StaticPool

from heykudos.database.engine import get_session
from heykudos.database.models import Base, User


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all HeyKudos tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine where every transaction takes the write lock up front.

    Separate connections per thread, so concurrent writers really contend.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'kudos.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _no_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def make_user(engine: Engine, handle: str, name: str | None = None) -> User:
    """Insert and return a detached User."""
    with get_session(engine) as session:
        user = User(platform_handle=handle, display_name=name or f"user{handle}")
        session.add(user)
    return user


@pytest.fixture
def user_factory(db_engine: Engine):
    """``user_factory("1", "alice")`` → committed User on the shared engine."""
    def _make(handle: str, name: str | None = None) -> User:
        return make_user(db_engine, handle, name)
    return _make
