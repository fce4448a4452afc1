"""
Proposal Aggregate Entities.

Core domain entities of the talk proposal workflow: users (speakers,
reviewers, admins), proposals with their lifecycle status, reviews and tags.

Proposal is the aggregate root. Reviews and tags are loaded into it by the
repositories on demand (named includes), never lazily.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from talk_proposals.domain.shared.exceptions import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProposalStatus(str, Enum):
    """
    Lifecycle states of a Proposal.

    PENDING is the initial state. Admins may move a proposal from any
    status to any other status; there is no terminal state.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def values(cls) -> list[str]:
        return [status.value for status in cls]

    @classmethod
    def parse(cls, value: "str | ProposalStatus") -> "ProposalStatus":
        """
        Convert raw input to a status.

        Raises:
            ValidationError: If value is not one of pending/approved/rejected

        Examples:
            >>> ProposalStatus.parse("approved")
            <ProposalStatus.APPROVED: 'approved'>
        """
        if isinstance(value, ProposalStatus):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"The selected status is invalid. Allowed: {', '.join(cls.values())}",
                field_name="status",
            ) from None

    def label(self) -> str:
        return self.value.capitalize()


class ReviewRating(int, Enum):
    """Allowed review scores. 10 is reserved for outstanding talks."""

    POOR = 1
    FAIR = 2
    GOOD = 3
    VERY_GOOD = 4
    EXCELLENT = 5
    OUTSTANDING = 10

    @classmethod
    def values(cls) -> list[int]:
        return [rating.value for rating in cls]

    @classmethod
    def parse(cls, value: "int | ReviewRating") -> "ReviewRating":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            allowed = ", ".join(str(v) for v in cls.values())
            raise ValidationError(
                f"The selected rating is invalid. Allowed: {allowed}",
                field_name="rating",
            ) from None

    def label(self) -> str:
        """
        Human-readable label used in notification mails.

        Examples:
            >>> ReviewRating.VERY_GOOD.label()
            '4 - Very Good'
        """
        name = self.name.replace("_", " ").title()
        return f"{self.value} - {name}"


class UserRole(str, Enum):
    SPEAKER = "speaker"
    REVIEWER = "reviewer"
    ADMIN = "admin"


@dataclass
class User:
    name: str
    email: str
    role: UserRole = UserRole.SPEAKER
    id: int | None = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_reviewer(self) -> bool:
        return self.role == UserRole.REVIEWER

    @property
    def is_speaker(self) -> bool:
        return self.role == UserRole.SPEAKER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
        }


@dataclass
class Tag:
    name: str
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class Review:
    """
    One reviewer's rating of one proposal.

    Reviews are immutable once stored. A reviewer may rate a given
    proposal only once.
    """

    proposal_id: int
    reviewer_id: int
    rating: ReviewRating
    comment: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=utc_now)
    reviewer: User | None = None

    def __post_init__(self) -> None:
        self.rating = ReviewRating.parse(self.rating)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "proposal_id": self.proposal_id,
            "reviewer_id": self.reviewer_id,
            "rating": self.rating.value,
            "rating_label": self.rating.label(),
            "comment": self.comment,
            "reviewer": self.reviewer.to_dict() if self.reviewer else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Proposal:
    """
    Mutable aggregate root representing a submitted talk.

    The entity follows a permissive state machine: every status may move
    to every other status, but only through change_status().

    Attributes:
        user_id: Owner (speaker) id
        title: Talk title
        description: Talk abstract
        file_path: Storage-relative path of the attached PDF (optional)
        status: Current lifecycle status
        id: Database id (None until persisted)
        created_at: Creation timestamp
        updated_at: Last modification timestamp
        user: Loaded owner (named include "user")
        tags: Loaded tags (named include "tags")
        reviews: Loaded reviews (named include "reviews")

    Examples:
        >>> proposal = Proposal(user_id=1, title="Async Python", description="...")
        >>> proposal.status
        <ProposalStatus.PENDING: 'pending'>
        >>> proposal.change_status("approved")
        <ProposalStatus.PENDING: 'pending'>
        >>> proposal.status
        <ProposalStatus.APPROVED: 'approved'>
    """

    user_id: int
    title: str
    description: str
    file_path: str | None = None
    status: ProposalStatus = ProposalStatus.PENDING
    id: int | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    user: User | None = None
    tags: list[Tag] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.status = ProposalStatus.parse(self.status)

    def change_status(self, new_status: "str | ProposalStatus") -> ProposalStatus:
        """
        Move the proposal to new_status.

        Returns:
            The status held before the change (equal to the new one when
            nothing changed)

        Raises:
            ValidationError: If new_status is not a valid status
        """
        target = ProposalStatus.parse(new_status)
        old_status = self.status
        if target != old_status:
            self.status = target
            self.updated_at = utc_now()
        return old_status

    def is_owned_by(self, user: User) -> bool:
        return user.id is not None and self.user_id == user.id

    def is_searchable(self) -> bool:
        """Only persisted proposals are pushed to the search index."""
        return self.id is not None

    @property
    def tag_ids(self) -> list[int]:
        return [tag.id for tag in self.tags if tag.id is not None]

    @property
    def reviews_count(self) -> int:
        return len(self.reviews)

    @property
    def average_rating(self) -> float | None:
        if not self.reviews:
            return None
        return round(sum(r.rating.value for r in self.reviews) / len(self.reviews), 2)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize entity to a JSON-friendly dictionary.

        Loaded relations are included; reviews are summarized by count
        and average to keep listing payloads small.
        """
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "file_path": self.file_path,
            "status": self.status.value,
            "user": self.user.to_dict() if self.user else None,
            "tags": [tag.to_dict() for tag in self.tags],
            "reviews_count": self.reviews_count,
            "average_rating": self.average_rating,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_search_document(self) -> dict[str, Any]:
        """Document pushed to the search index by the reindex job."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "tags": [tag.name for tag in self.tags],
            "tag_ids": self.tag_ids,
            "average_rating": self.average_rating,
            "reviews_count": self.reviews_count,
            "created_at": self.created_at.isoformat(),
        }
