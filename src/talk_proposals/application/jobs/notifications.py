"""
Notification Jobs

One job per notification kind. Each job reloads the proposal, resolves
recipients, and sends one message per recipient. Missing recipients are
a warning, not an error. Transport failures propagate for retry.
"""

import logging
from collections.abc import Callable

from talk_proposals.application.jobs.messages import (
    build_reviewed_message,
    build_status_changed_message,
    build_submitted_message,
)
from talk_proposals.application.ports.mailer import MailerProtocol
from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.domain.proposals.entities import ProposalStatus, UserRole

logger = logging.getLogger(__name__)


class _NotificationJob:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        mailer: MailerProtocol,
    ) -> None:
        self.uow_factory = uow_factory
        self.mailer = mailer


class NotifyProposalSubmittedJob(_NotificationJob):
    """Tell every admin about a new proposal."""

    def run(self, proposal_id: int) -> int:
        """
        Returns:
            Number of messages sent
        """
        with self.uow_factory() as uow:
            proposal = uow.proposals.get(proposal_id, with_relations=("user", "tags"))
            admins = uow.users.list_by_role(UserRole.ADMIN)

        if proposal is None:
            logger.warning(f"Proposal {proposal_id} not found, skipping submitted notification")
            return 0
        if not admins:
            logger.warning(
                f"No admin users found to notify about proposal {proposal_id} submission"
            )
            return 0

        for admin in admins:
            self.mailer.send(build_submitted_message(proposal, admin))

        logger.info(
            f"Proposal {proposal_id} submitted notification sent to {len(admins)} admin(s)"
        )
        return len(admins)


class NotifyStatusChangedJob(_NotificationJob):
    """Tell the speaker their proposal moved to another status."""

    def run(self, proposal_id: int, old_status: str, new_status: str) -> int:
        with self.uow_factory() as uow:
            proposal = uow.proposals.get(proposal_id, with_relations=("user",))

        if proposal is None or proposal.user is None:
            logger.warning(
                f"Proposal {proposal_id} has no speaker to notify about status change"
            )
            return 0

        self.mailer.send(
            build_status_changed_message(
                proposal,
                proposal.user,
                ProposalStatus.parse(old_status),
                ProposalStatus.parse(new_status),
            )
        )
        logger.info(
            f"Proposal {proposal_id} status changed notification sent to {proposal.user.email}"
        )
        return 1


class NotifyProposalReviewedJob(_NotificationJob):
    """Tell the speaker a reviewer rated their proposal."""

    def run(self, proposal_id: int, review_id: int) -> int:
        with self.uow_factory() as uow:
            proposal = uow.proposals.get(proposal_id, with_relations=("user",))
            review = uow.reviews.get(review_id)

        if proposal is None or proposal.user is None:
            logger.warning(f"Proposal {proposal_id} has no speaker to notify about review")
            return 0
        if review is None:
            logger.warning(f"Review {review_id} not found, skipping reviewed notification")
            return 0

        self.mailer.send(build_reviewed_message(proposal, proposal.user, review))
        logger.info(
            f"Proposal {proposal_id} reviewed notification sent to {proposal.user.email}"
        )
        return 1
