"""
Tests for SqlAlchemyUnitOfWork and the engine factory.
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from talk_proposals.domain.proposals.entities import User
from talk_proposals.domain.shared.exceptions import PersistenceError
from talk_proposals.infrastructure.persistence.sqlalchemy import (
    SqlAlchemyUnitOfWork,
    create_schema,
    make_engine,
)
from talk_proposals.infrastructure.persistence.sqlalchemy.engine import (
    is_in_memory_sqlite,
    is_sqlite,
)


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    create_schema(engine)
    return engine


def count_users(engine) -> int:
    with SqlAlchemyUnitOfWork(engine) as uow:
        return len(uow.users.get_many([1, 2, 3]))


def test_commit_persists(engine):
    with SqlAlchemyUnitOfWork(engine) as uow:
        uow.users.add(User(name="A", email="a@example.com"))
        uow.commit()

    assert count_users(engine) == 1


def test_leaving_without_commit_rolls_back(engine):
    with SqlAlchemyUnitOfWork(engine) as uow:
        uow.users.add(User(name="A", email="a@example.com"))

    assert count_users(engine) == 0


def test_exception_rolls_back_and_propagates(engine):
    with pytest.raises(RuntimeError):
        with SqlAlchemyUnitOfWork(engine) as uow:
            uow.users.add(User(name="A", email="a@example.com"))
            raise RuntimeError("boom")

    assert count_users(engine) == 0


def test_database_errors_become_persistence_errors(engine):
    with pytest.raises(PersistenceError) as exc_info:
        with SqlAlchemyUnitOfWork(engine) as uow:
            uow.connection.execute(text("SELECT * FROM missing_table"))

    assert isinstance(exc_info.value.original_error, OperationalError)


def test_sqlite_foreign_keys_are_enforced(engine):
    with pytest.raises(PersistenceError):
        with SqlAlchemyUnitOfWork(engine) as uow:
            uow.connection.execute(
                text(
                    "INSERT INTO proposals (user_id, title, description, status, "
                    "created_at, updated_at) VALUES (99, 't', 'd', 'pending', "
                    "'2026-01-01', '2026-01-01')"
                )
            )
            uow.commit()


@pytest.mark.parametrize(
    "url, sqlite, in_memory",
    [
        ("sqlite://", True, True),
        ("sqlite:///:memory:", True, True),
        ("sqlite:///./data.db", True, False),
        ("postgresql+psycopg://u:p@db/talks", False, False),
    ],
)
def test_url_helpers(url, sqlite, in_memory):
    assert is_sqlite(url) is sqlite
    assert is_in_memory_sqlite(url) is in_memory
