"""
Admin Proposal Use Cases

Responsibility:
    Status moderation (the proposal status machine entry point) and the
    admin listing.

Business Rules:
    - Only admins may change status or use the admin listing
    - Target status must be pending, approved or rejected
    - Any status may move to any other status
    - Same status -> row untouched, no event, no cache invalidation
    - Changed status -> commit, invalidate caches, publish ProposalStatusChanged
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from talk_proposals.application.events.bus import EventBus
from talk_proposals.application.models import Page
from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.application.services.proposal_cache import ProposalCache
from talk_proposals.application.services.proposal_service import ProposalService
from talk_proposals.domain.proposals.entities import Proposal, ProposalStatus, User
from talk_proposals.domain.proposals.events import ProposalStatusChanged
from talk_proposals.domain.proposals.repositories import ALL_RELATIONS
from talk_proposals.domain.shared.exceptions import (
    AuthorizationError,
    ProposalNotFoundError,
)

logger = logging.getLogger(__name__)


class AdminProposalService:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        cache: ProposalCache,
        events: EventBus,
        proposals: ProposalService,
    ) -> None:
        self.uow_factory = uow_factory
        self.cache = cache
        self.events = events
        self.proposals = proposals

    def update_status(
        self, actor: User, proposal_id: int, new_status: "str | ProposalStatus"
    ) -> Proposal:
        """
        Move a proposal to new_status.

        Returns:
            Proposal with user, tags and reviews loaded

        Raises:
            AuthorizationError: Actor is not an admin
            ValidationError: Unknown status value
            ProposalNotFoundError: Unknown proposal
            PersistenceError: Transaction failed (rolled back)
        """
        self._ensure_admin(actor)
        target = ProposalStatus.parse(new_status)

        with self.uow_factory() as uow:
            proposal = uow.proposals.get(proposal_id, with_relations=ALL_RELATIONS)
            if proposal is None:
                raise ProposalNotFoundError(resource_id=proposal_id)

            old_status = proposal.change_status(target)
            if old_status == target:
                logger.info(
                    f"Proposal {proposal_id} already {target.value}, no status change"
                )
                return proposal

            uow.proposals.update(proposal)
            uow.commit()

        logger.info(
            f"Proposal {proposal_id} status changed {old_status.value} -> "
            f"{target.value} by admin {actor.id}"
        )
        self.cache.forget_proposal(proposal.id, proposal.user_id)
        self.events.publish(
            ProposalStatusChanged(
                proposal=proposal, old_status=old_status, new_status=target
            )
        )
        return proposal

    def list(self, actor: User, **filters) -> Page[Proposal]:
        """Every proposal, same filters as ProposalService.list()."""
        self._ensure_admin(actor)
        return self.proposals.list(actor, **filters)

    @staticmethod
    def _ensure_admin(actor: User) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can manage proposal status")
