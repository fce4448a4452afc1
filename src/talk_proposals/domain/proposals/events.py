"""
Proposal Domain Events.

Immutable records created after a transaction commits. Each event carries
a snapshot of the proposal as it was at commit time; consumers that need
fresh data (background jobs) reload by id.
"""

from dataclasses import dataclass, field
from datetime import datetime

from talk_proposals.domain.proposals.entities import (
    Proposal,
    ProposalStatus,
    Review,
    utc_now,
)


@dataclass(frozen=True)
class DomainEvent:
    proposal: Proposal

    @property
    def proposal_id(self) -> int:
        return self.proposal.id


@dataclass(frozen=True)
class ProposalSubmitted(DomainEvent):
    """A speaker submitted a new proposal (file_path is None without attachment)."""

    file_path: str | None = None
    owner_id: int | None = None
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ProposalStatusChanged(DomainEvent):
    """An admin moved a proposal to a different status."""

    old_status: ProposalStatus = ProposalStatus.PENDING
    new_status: ProposalStatus = ProposalStatus.PENDING
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ProposalReviewed(DomainEvent):
    """A reviewer rated a proposal."""

    review: Review | None = None
    occurred_at: datetime = field(default_factory=utc_now)
