"""
SQLAlchemy-backed Unit of Work.

Opens one Connection per `with` block. Leaving the block rolls back
anything not committed; database errors surface as PersistenceError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from talk_proposals.domain.shared.exceptions import PersistenceError
from talk_proposals.infrastructure.persistence.sqlalchemy.repositories import (
    SqlAlchemyProposalRepository,
    SqlAlchemyReviewRepository,
    SqlAlchemyTagRepository,
    SqlAlchemyUserRepository,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    """SQLAlchemy-backed Unit of Work."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.connection: Connection

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        self.connection = self.engine.connect()
        self.proposals = SqlAlchemyProposalRepository(self.connection)
        self.reviews = SqlAlchemyReviewRepository(self.connection)
        self.tags = SqlAlchemyTagRepository(self.connection)
        self.users = SqlAlchemyUserRepository(self.connection)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self.connection.close()
        if isinstance(exc, SQLAlchemyError):
            logger.error(f"Database transaction failed: {exc}")
            raise PersistenceError("Database transaction failed", original_error=exc) from exc

    def commit(self) -> None:
        try:
            self.connection.commit()
        except SQLAlchemyError as e:
            logger.error(f"Commit failed: {e}")
            raise PersistenceError("Database transaction failed", original_error=e) from e

    def rollback(self) -> None:
        self.connection.rollback()
