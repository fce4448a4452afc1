"""
Base class of background job tasks.

Job state is tracked by Celery itself and mirrored in the log lines as
JobState values:
    QUEUED (PENDING) -> RUNNING (STARTED) -> SUCCEEDED (SUCCESS)
                                          -> RETRYING (RETRY) -> ...
                                          -> FAILED (FAILURE, on_failure)

on_failure runs once a task gives up: after the retry budget is spent,
or right away for errors that are never retried. Permanent failures are
only logged; nothing waits on a job result.
"""

import logging

from celery import Task

from talk_proposals.application.models import JobState
from talk_proposals.domain.shared.exceptions import (
    DomainValidationError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Errors that a retry cannot fix
NON_RETRYABLE_ERRORS = (DomainValidationError, NotFoundError, ValidationError)


class ProposalJobTask(Task):
    abstract = True

    def before_start(self, task_id, args, kwargs) -> None:
        logger.debug(
            f"{self.name} {JobState.RUNNING.value} (task {task_id}, attempt "
            f"{self.request.retries + 1}/{self.max_retries + 1})"
        )

    def on_success(self, retval, task_id, args, kwargs) -> None:
        logger.info(f"{self.name} {JobState.SUCCEEDED.value} (task {task_id}): {retval}")

    def on_retry(self, exc, task_id, args, kwargs, einfo) -> None:
        logger.warning(
            f"{self.name} {JobState.RETRYING.value} (task {task_id}, attempt "
            f"{self.request.retries + 1}/{self.max_retries + 1}): {exc}"
        )

    def on_failure(self, exc, task_id, args, kwargs, einfo) -> None:
        logger.error(
            f"{self.name} {JobState.FAILED.value} permanently (task {task_id}, {kwargs}): {exc}"
        )
