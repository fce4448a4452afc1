"""
SQLAlchemy persistence adapters (tables, engine, repositories, unit of work).
"""

from talk_proposals.infrastructure.persistence.sqlalchemy.engine import (
    create_schema,
    make_engine,
)
from talk_proposals.infrastructure.persistence.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
)

__all__ = ["SqlAlchemyUnitOfWork", "create_schema", "make_engine"]
