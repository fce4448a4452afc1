"""
Proposal Repository Interfaces

Repository pattern interfaces for the proposal aggregate, reviews, tags
and users. Defines the data access contract the application layer needs.

Responsibility:
    - Define data access contract (interface)
    - Enable Dependency Inversion (Domain defines, Infrastructure implements)
    - Support testing (easy to fake)

Architecture Notes:
    - Protocol-based interfaces (structural typing)
    - Synchronous methods, always called inside a unit of work
    - Relations are loaded through explicit named includes:
      `get(42, with_relations=("user", "tags", "reviews"))`
    - Implementation in Infrastructure layer (SQLAlchemy)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol

from talk_proposals.domain.proposals.entities import (
    Proposal,
    ProposalStatus,
    Review,
    Tag,
    User,
    UserRole,
)

ALL_RELATIONS = ("user", "tags", "reviews")


@dataclass
class ProposalFilter:
    """
    Listing criteria.

    Attributes:
        user_id: Restrict to one owner (speakers see only their own proposals)
        status: Exact status match
        tag_ids: Any-of tag match
        title_contains: Case-insensitive title substring
        ids: Restrict to these ids (result of a search index query)
    """

    user_id: int | None = None
    status: ProposalStatus | None = None
    tag_ids: list[int] = field(default_factory=list)
    title_contains: str | None = None
    ids: list[int] | None = None


@dataclass(frozen=True)
class RatedProposal:
    """Row of the top-rated query."""

    proposal: Proposal
    average_rating: float
    reviews_count: int


class ProposalRepositoryProtocol(Protocol):
    def add(self, proposal: Proposal) -> Proposal:
        """Insert proposal and return it with its id assigned."""
        ...

    def get(
        self, proposal_id: int, with_relations: Iterable[str] = ()
    ) -> Proposal | None:
        """
        Load a proposal by id.

        Args:
            proposal_id: Proposal id
            with_relations: Named includes, any of "user", "tags", "reviews"

        Returns:
            Proposal or None when no row exists
        """
        ...

    def update(self, proposal: Proposal) -> None:
        """Persist scalar fields (title, description, file_path, status, updated_at)."""
        ...

    def delete(self, proposal_id: int) -> None:
        ...

    def sync_tags(self, proposal_id: int, tag_ids: list[int]) -> None:
        """Replace the full tag set of the proposal (empty list clears it)."""
        ...

    def list(
        self,
        criteria: ProposalFilter,
        page: int = 1,
        per_page: int = 15,
        with_relations: Iterable[str] = (),
    ) -> tuple[list[Proposal], int]:
        """Return one page of proposals (newest first) and the total count."""
        ...

    def file_paths_for_user(
        self, user_id: int, exclude_proposal_id: int | None = None
    ) -> list[str]:
        """Storage paths of every file attached to the user's proposals."""
        ...

    def top_rated(self, min_rating: float, limit: int) -> list[RatedProposal]:
        """
        Approved proposals with at least one review and average >= min_rating,
        ordered by average desc then review count desc.
        """
        ...

    def all_ids(self) -> list[int]:
        ...


class ReviewRepositoryProtocol(Protocol):
    def add(self, review: Review) -> Review:
        """
        Insert review.

        Raises:
            DuplicateReviewError: If (proposal_id, reviewer_id) already exists
        """
        ...

    def get(self, review_id: int) -> Review | None:
        ...

    def exists_for(self, proposal_id: int, reviewer_id: int) -> bool:
        ...

    def list_for_proposal(self, proposal_id: int) -> list[Review]:
        """Reviews of a proposal with their reviewer loaded, newest first."""
        ...


class TagRepositoryProtocol(Protocol):
    def first_or_create(self, name: str) -> Tag:
        """Return the tag named exactly `name`, inserting it on first use."""
        ...

    def list(self, search: str | None = None) -> list[Tag]:
        """All tags ordered by name, optionally filtered by substring."""
        ...


class UserRepositoryProtocol(Protocol):
    def add(self, user: User) -> User:
        ...

    def get(self, user_id: int) -> User | None:
        ...

    def list_by_role(self, role: UserRole) -> list[User]:
        ...
