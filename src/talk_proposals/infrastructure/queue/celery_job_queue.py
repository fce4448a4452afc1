"""
Celery Job Queue

JobQueueProtocol implementation sending tasks by name, so producers
(listeners, services) never import the task modules themselves.

Error Handling:
    - Broker failures (KombuError and its subclasses) are wrapped in
      TransientInfraError; the event bus logs them per listener
"""

import logging
from typing import Any

from celery import Celery
from kombu.exceptions import KombuError

from talk_proposals.application.models import JobName, JobState
from talk_proposals.domain.shared.exceptions import TransientInfraError

logger = logging.getLogger(__name__)


class CeleryJobQueue:
    def __init__(self, celery_app: Celery) -> None:
        self.celery_app = celery_app

    def enqueue(self, job: JobName, payload: dict[str, Any]) -> str | None:
        try:
            result = self.celery_app.send_task(job.value, kwargs=payload)
        except (KombuError, OSError) as e:
            logger.error(f"Failed to enqueue {job.value}: {e}")
            raise TransientInfraError(f"Could not enqueue {job.value}", original_error=e) from e

        logger.info(f"Enqueued {job.value} ({JobState.QUEUED.value}, task_id={result.id})")
        return result.id
