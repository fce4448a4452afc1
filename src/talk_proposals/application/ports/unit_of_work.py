"""
Unit of Work Port

Transaction boundary of every use case. Repositories obtained from a
unit of work share one database transaction.
"""

from typing import Protocol

from talk_proposals.domain.proposals.repositories import (
    ProposalRepositoryProtocol,
    ReviewRepositoryProtocol,
    TagRepositoryProtocol,
    UserRepositoryProtocol,
)


class UnitOfWorkProtocol(Protocol):
    """
    Context manager opening one transaction.

    Leaving the block without commit() rolls back.

    Usage:
        >>> with uow_factory() as uow:
        ...     proposal = uow.proposals.get(42)
        ...     proposal.change_status("approved")
        ...     uow.proposals.update(proposal)
        ...     uow.commit()
    """

    proposals: ProposalRepositoryProtocol
    reviews: ReviewRepositoryProtocol
    tags: TagRepositoryProtocol
    users: UserRepositoryProtocol

    def __enter__(self) -> "UnitOfWorkProtocol":
        ...

    def __exit__(self, *args) -> None:
        ...

    def commit(self) -> None:
        """
        Raises:
            PersistenceError: If the transaction cannot be committed
        """
        ...

    def rollback(self) -> None:
        ...
