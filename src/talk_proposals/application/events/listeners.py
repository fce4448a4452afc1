"""
Side-Effect Dispatchers

Listeners subscribed to proposal domain events. Each listener enqueues
exactly one background job and returns; the side effect itself (mail,
search indexing, file processing) runs in a Celery worker.

Registration order (significant for reproducibility):
    ProposalSubmitted     -> [ProcessProposalFile, ReindexProposal, NotifyAdmins]
    ProposalStatusChanged -> [ReindexProposal, NotifySpeakerOfStatusChange]
    ProposalReviewed      -> [ReindexProposal, NotifySpeakerOfReview]
"""

import logging

from talk_proposals.application.events.bus import EventBus
from talk_proposals.application.models import JobName
from talk_proposals.application.ports.job_queue import JobQueueProtocol
from talk_proposals.domain.proposals.events import (
    DomainEvent,
    ProposalReviewed,
    ProposalStatusChanged,
    ProposalSubmitted,
)

logger = logging.getLogger(__name__)


class _JobListener:
    """Base listener holding the job queue."""

    def __init__(self, job_queue: JobQueueProtocol) -> None:
        self.job_queue = job_queue

    def _enqueue(self, job: JobName, payload: dict) -> None:
        job_id = self.job_queue.enqueue(job, payload)
        logger.debug(f"Enqueued {job.value} (job_id={job_id}) with {payload}")


class ProcessProposalFileListener(_JobListener):
    def __call__(self, event: ProposalSubmitted) -> None:
        if not event.file_path:
            return
        self._enqueue(
            JobName.PROCESS_PROPOSAL_FILE,
            {
                "proposal_id": event.proposal_id,
                "file_path": event.file_path,
                "owner_id": event.owner_id,
            },
        )


class ReindexProposalListener(_JobListener):
    def __call__(self, event: DomainEvent) -> None:
        self._enqueue(JobName.REINDEX_PROPOSAL, {"proposal_id": event.proposal_id})


class NotifyAdminsListener(_JobListener):
    def __call__(self, event: ProposalSubmitted) -> None:
        self._enqueue(
            JobName.NOTIFY_PROPOSAL_SUBMITTED, {"proposal_id": event.proposal_id}
        )


class NotifySpeakerOfStatusChangeListener(_JobListener):
    def __call__(self, event: ProposalStatusChanged) -> None:
        self._enqueue(
            JobName.NOTIFY_STATUS_CHANGED,
            {
                "proposal_id": event.proposal_id,
                "old_status": event.old_status.value,
                "new_status": event.new_status.value,
            },
        )


class NotifySpeakerOfReviewListener(_JobListener):
    def __call__(self, event: ProposalReviewed) -> None:
        self._enqueue(
            JobName.NOTIFY_PROPOSAL_REVIEWED,
            {"proposal_id": event.proposal_id, "review_id": event.review.id},
        )


def register_listeners(bus: EventBus, job_queue: JobQueueProtocol) -> EventBus:
    """Wire every proposal listener into bus, in their fixed order."""
    reindex = ReindexProposalListener(job_queue)

    bus.subscribe(ProposalSubmitted, ProcessProposalFileListener(job_queue))
    bus.subscribe(ProposalSubmitted, reindex)
    bus.subscribe(ProposalSubmitted, NotifyAdminsListener(job_queue))

    bus.subscribe(ProposalStatusChanged, reindex)
    bus.subscribe(ProposalStatusChanged, NotifySpeakerOfStatusChangeListener(job_queue))

    bus.subscribe(ProposalReviewed, reindex)
    bus.subscribe(ProposalReviewed, NotifySpeakerOfReviewListener(job_queue))
    return bus
