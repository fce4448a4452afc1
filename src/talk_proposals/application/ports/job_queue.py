"""
Job Queue Port

Background job producer. Listeners and services enqueue by job name
only; they never import worker code.
"""

from typing import Any, Protocol

from talk_proposals.application.models import JobName


class JobQueueProtocol(Protocol):
    def enqueue(self, job: JobName, payload: dict[str, Any]) -> str | None:
        """
        Queue one job.

        Args:
            job: Registered job name
            payload: JSON-serializable keyword arguments of the job

        Returns:
            Queue-assigned job id (None when the queue does not track ids)
        """
        ...
