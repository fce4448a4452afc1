"""
Proposals Subdomain

Talk proposals, their reviews and tags, the status machine and the
domain events raised when a proposal changes.

This module exports:
    - Proposal, ProposalStatus: Aggregate root and its lifecycle states
    - Review, ReviewRating: Reviewer scores
    - Tag, User, UserRole: Supporting entities
    - ProposalSubmitted, ProposalStatusChanged, ProposalReviewed: Domain events
    - *RepositoryProtocol: Persistence interfaces
"""

from .entities import (
    Proposal,
    ProposalStatus,
    Review,
    ReviewRating,
    Tag,
    User,
    UserRole,
)
from .events import (
    DomainEvent,
    ProposalReviewed,
    ProposalStatusChanged,
    ProposalSubmitted,
)
from .repositories import (
    ALL_RELATIONS,
    ProposalFilter,
    ProposalRepositoryProtocol,
    RatedProposal,
    ReviewRepositoryProtocol,
    TagRepositoryProtocol,
    UserRepositoryProtocol,
)

__all__ = [
    "Proposal",
    "ProposalStatus",
    "Review",
    "ReviewRating",
    "Tag",
    "User",
    "UserRole",
    "DomainEvent",
    "ProposalSubmitted",
    "ProposalStatusChanged",
    "ProposalReviewed",
    "ALL_RELATIONS",
    "ProposalFilter",
    "RatedProposal",
    "ProposalRepositoryProtocol",
    "ReviewRepositoryProtocol",
    "TagRepositoryProtocol",
    "UserRepositoryProtocol",
]
