"""Background job queue adapters."""

from talk_proposals.infrastructure.queue.celery_job_queue import CeleryJobQueue

__all__ = ["CeleryJobQueue"]
