"""
Notification Background Tasks

Thin Celery wrappers around the notification jobs. Mail transport
failures are retried; permanent failures are logged by the base task.
"""

import logging

from celery import Task

from talk_proposals.application.jobs.notifications import (
    NotifyProposalReviewedJob,
    NotifyProposalSubmittedJob,
    NotifyStatusChangedJob,
)
from talk_proposals.application.models import JobName
from talk_proposals.application.tasks.base import ProposalJobTask
from talk_proposals.application.tasks.celery_app import (
    JOB_MAX_RETRIES,
    JOB_RETRY_DELAY,
    celery_app,
)
from talk_proposals.bootstrap import get_container

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=ProposalJobTask,
    name=JobName.NOTIFY_PROPOSAL_SUBMITTED.value,
    max_retries=JOB_MAX_RETRIES,
    default_retry_delay=JOB_RETRY_DELAY,
)
def notify_proposal_submitted_task(self: Task, proposal_id: int) -> dict:
    container = get_container()
    job = NotifyProposalSubmittedJob(container.uow_factory, container.mailer)
    try:
        sent = job.run(proposal_id)
    except Exception as exc:
        logger.error(f"Failed to send proposal {proposal_id} submitted notification: {exc}")
        raise self.retry(exc=exc)
    return {"proposal_id": proposal_id, "sent": sent}


@celery_app.task(
    bind=True,
    base=ProposalJobTask,
    name=JobName.NOTIFY_STATUS_CHANGED.value,
    max_retries=JOB_MAX_RETRIES,
    default_retry_delay=JOB_RETRY_DELAY,
)
def notify_status_changed_task(
    self: Task, proposal_id: int, old_status: str, new_status: str
) -> dict:
    container = get_container()
    job = NotifyStatusChangedJob(container.uow_factory, container.mailer)
    try:
        sent = job.run(proposal_id, old_status, new_status)
    except Exception as exc:
        logger.error(
            f"Failed to send proposal {proposal_id} status changed notification: {exc}"
        )
        raise self.retry(exc=exc)
    return {"proposal_id": proposal_id, "sent": sent}


@celery_app.task(
    bind=True,
    base=ProposalJobTask,
    name=JobName.NOTIFY_PROPOSAL_REVIEWED.value,
    max_retries=JOB_MAX_RETRIES,
    default_retry_delay=JOB_RETRY_DELAY,
)
def notify_proposal_reviewed_task(self: Task, proposal_id: int, review_id: int) -> dict:
    container = get_container()
    job = NotifyProposalReviewedJob(container.uow_factory, container.mailer)
    try:
        sent = job.run(proposal_id, review_id)
    except Exception as exc:
        logger.error(
            f"Failed to send proposal {proposal_id} reviewed notification "
            f"(review {review_id}): {exc}"
        )
        raise self.retry(exc=exc)
    return {"proposal_id": proposal_id, "review_id": review_id, "sent": sent}
