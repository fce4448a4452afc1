"""
Celery Tasks

Responsibility:
    Celery wrappers adding retry, backoff and permanent-failure handling
    around the job executors in application.jobs.

Contains:
    - celery_app.py - Celery configuration and retry policy
    - base.py - Task base class logging retries and permanent failures
    - proposal_tasks.py - Search index and file processing tasks
    - notification_tasks.py - Mail notification tasks

Does NOT contain:
    - Business logic (delegates to application.jobs)
"""

from .celery_app import celery_app

__all__ = ["celery_app"]
