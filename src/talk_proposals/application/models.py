"""
Shared Application Models

Responsibility:
    Contains shared models used across Application Layer.
    Prevents circular dependencies and code duplication.

Architecture Notes:
    - Part of Application Layer (Shared)
    - Used by Services, Listeners, Jobs and Tasks
    - Enums and common DTOs that don't belong to specific modules

Contains:
    - JobName: Registered background job (Celery task) names
    - JobState: Enum for background job lifecycle states
    - Page: One page of a listing
    - TopRatedProposal: Row of the top-rated listing

Does NOT contain:
    - Business logic (belongs to Domain Layer)
    - HTTP models (belongs to API Layer)
"""

from dataclasses import dataclass
from enum import Enum
from math import ceil
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class JobName(str, Enum):
    """
    Names of background jobs, used both by JobQueue.enqueue() and as
    Celery task names, so producers never import worker code.
    """

    PROCESS_PROPOSAL_FILE = "proposals.process_file"
    REINDEX_PROPOSAL = "proposals.reindex"
    REMOVE_PROPOSAL_FROM_INDEX = "proposals.remove_from_index"
    NOTIFY_PROPOSAL_SUBMITTED = "notifications.proposal_submitted"
    NOTIFY_STATUS_CHANGED = "notifications.proposal_status_changed"
    NOTIFY_PROPOSAL_REVIEWED = "notifications.proposal_reviewed"


class JobState(str, Enum):
    """
    Lifecycle of one background job.

    QUEUED -> RUNNING -> SUCCEEDED
                      -> RETRYING -> RUNNING ... (at most JOB_MAX_ATTEMPTS runs)
                      -> FAILED (permanent, logged only)
    """

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"
    FAILED = "failed"


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, ceil(self.total / self.per_page)) if self.per_page else 1

    def meta(self) -> dict[str, int]:
        return {
            "current_page": self.page,
            "per_page": self.per_page,
            "total": self.total,
            "last_page": self.last_page,
        }


@dataclass
class TopRatedProposal:
    """Cached top-rated row, stored as plain data so it round-trips through Redis."""

    proposal: dict[str, Any]
    average_rating: float
    reviews_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.proposal,
            "average_rating": self.average_rating,
            "reviews_count": self.reviews_count,
        }


@dataclass
class StoredFile:
    """File content served back to the owner."""

    content: bytes
    filename: str
    media_type: str = "application/pdf"
