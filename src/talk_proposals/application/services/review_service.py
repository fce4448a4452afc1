"""
Review Use Cases

Responsibility:
    Reviewers rate proposals; anyone allowed to view a proposal can read
    its reviews.

Business Rules:
    - Only reviewers may create reviews
    - One review per (proposal, reviewer): checked before insert and
      backed by a unique constraint
    - Reviews are immutable (no update path)
    - A new review changes ratings, so proposal and top-rated caches are
      invalidated before ProposalReviewed is published
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from talk_proposals.application.events.bus import EventBus
from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.application.services.proposal_cache import ProposalCache
from talk_proposals.domain.proposals.entities import Review, ReviewRating, User
from talk_proposals.domain.proposals.events import ProposalReviewed
from talk_proposals.domain.proposals.repositories import ALL_RELATIONS
from talk_proposals.domain.shared.exceptions import (
    AuthorizationError,
    DuplicateReviewError,
    ProposalNotFoundError,
    ReviewNotFoundError,
)

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        cache: ProposalCache,
        events: EventBus,
    ) -> None:
        self.uow_factory = uow_factory
        self.cache = cache
        self.events = events

    def create(
        self,
        actor: User,
        proposal_id: int,
        rating: "int | ReviewRating",
        comment: str | None = None,
    ) -> Review:
        """
        Raises:
            AuthorizationError: Actor is not a reviewer
            ValidationError: Rating outside 1, 2, 3, 4, 5, 10
            ProposalNotFoundError: Unknown proposal
            DuplicateReviewError: Actor already reviewed this proposal
        """
        if not actor.is_reviewer:
            raise AuthorizationError("Only reviewers can review proposals")
        rating = ReviewRating.parse(rating)

        with self.uow_factory() as uow:
            proposal = uow.proposals.get(proposal_id)
            if proposal is None:
                raise ProposalNotFoundError(resource_id=proposal_id)
            if uow.reviews.exists_for(proposal_id, actor.id):
                raise DuplicateReviewError()

            review = uow.reviews.add(
                Review(
                    proposal_id=proposal_id,
                    reviewer_id=actor.id,
                    rating=rating,
                    comment=comment,
                )
            )
            review.reviewer = actor
            proposal = uow.proposals.get(proposal_id, with_relations=ALL_RELATIONS)
            uow.commit()

        logger.info(
            f"Review {review.id} ({rating.label()}) added to proposal {proposal_id} "
            f"by reviewer {actor.id}"
        )
        self.cache.forget_proposal(proposal.id, proposal.user_id)
        self.events.publish(ProposalReviewed(proposal=proposal, review=review))
        return review

    def list(self, proposal_id: int) -> list[Review]:
        with self.uow_factory() as uow:
            if uow.proposals.get(proposal_id) is None:
                raise ProposalNotFoundError(resource_id=proposal_id)
            return uow.reviews.list_for_proposal(proposal_id)

    def get(self, proposal_id: int, review_id: int) -> Review:
        """
        Raises:
            ProposalNotFoundError: Unknown proposal
            ReviewNotFoundError: Unknown review or review of another proposal
        """
        with self.uow_factory() as uow:
            if uow.proposals.get(proposal_id) is None:
                raise ProposalNotFoundError(resource_id=proposal_id)
            review = uow.reviews.get(review_id)
        if review is None or review.proposal_id != proposal_id:
            raise ReviewNotFoundError(resource_id=review_id)
        return review
