"""
Proposal Background Tasks

Thin Celery wrappers around the search index and file processing jobs.
Retry policy: JOB_MAX_ATTEMPTS attempts, JOB_BACKOFF_SECONDS apart.
Domain validation and not-found errors are never retried.
"""

import logging

from celery import Task

from talk_proposals.application.jobs.process_file import ProcessProposalFileJob
from talk_proposals.application.jobs.reindex import (
    ReindexProposalJob,
    RemoveProposalFromIndexJob,
)
from talk_proposals.application.models import JobName
from talk_proposals.application.tasks.base import NON_RETRYABLE_ERRORS, ProposalJobTask
from talk_proposals.application.tasks.celery_app import (
    JOB_MAX_RETRIES,
    JOB_RETRY_DELAY,
    celery_app,
)
from talk_proposals.bootstrap import get_container

logger = logging.getLogger(__name__)


class ProcessFileTask(ProposalJobTask):
    abstract = True

    def on_failure(self, exc, task_id, args, kwargs, einfo) -> None:
        super().on_failure(exc, task_id, args, kwargs, einfo)
        file_path = kwargs.get("file_path")
        if file_path:
            _process_file_job().cleanup(file_path)


def _process_file_job() -> ProcessProposalFileJob:
    container = get_container()
    return ProcessProposalFileJob(
        container.uow_factory, container.file_service, container.proposal_cache
    )


@celery_app.task(
    bind=True,
    base=ProposalJobTask,
    name=JobName.REINDEX_PROPOSAL.value,
    max_retries=JOB_MAX_RETRIES,
    default_retry_delay=JOB_RETRY_DELAY,
)
def reindex_proposal_task(self: Task, proposal_id: int) -> dict:
    container = get_container()
    job = ReindexProposalJob(container.uow_factory, container.search_index)
    try:
        indexed = job.run(proposal_id)
    except Exception as exc:
        logger.error(f"Failed to index proposal {proposal_id}: {exc}")
        raise self.retry(exc=exc)
    return {"proposal_id": proposal_id, "status": "indexed" if indexed else "skipped"}


@celery_app.task(
    bind=True,
    base=ProposalJobTask,
    name=JobName.REMOVE_PROPOSAL_FROM_INDEX.value,
    max_retries=JOB_MAX_RETRIES,
    default_retry_delay=JOB_RETRY_DELAY,
)
def remove_proposal_from_index_task(self: Task, proposal_id: int) -> dict:
    job = RemoveProposalFromIndexJob(get_container().search_index)
    try:
        job.run(proposal_id)
    except Exception as exc:
        logger.error(f"Failed to remove proposal {proposal_id} from index: {exc}")
        raise self.retry(exc=exc)
    return {"proposal_id": proposal_id, "status": "removed"}


@celery_app.task(
    bind=True,
    base=ProcessFileTask,
    name=JobName.PROCESS_PROPOSAL_FILE.value,
    max_retries=JOB_MAX_RETRIES,
    default_retry_delay=JOB_RETRY_DELAY,
)
def process_proposal_file_task(
    self: Task, proposal_id: int, file_path: str, owner_id: int
) -> dict:
    job = _process_file_job()
    try:
        job.run(proposal_id, file_path, owner_id)
    except NON_RETRYABLE_ERRORS:
        raise
    except Exception as exc:
        logger.error(f"Failed to process file {file_path} of proposal {proposal_id}: {exc}")
        raise self.retry(exc=exc)
    return {"proposal_id": proposal_id, "file_path": file_path, "status": "valid"}
