"""
Celery application initialization.

Broker, result backend and the job retry policy come from Settings
(environment variables).

Architecture Note:
- Part of Application Layer (orchestration)
- No business logic - pure infrastructure setup
- Task modules are listed in `include` so workers register them on start
"""

from celery import Celery

from talk_proposals.config import Settings

settings = Settings.from_env()

# Retry policy shared by every background job: JOB_MAX_ATTEMPTS runs in total
JOB_MAX_RETRIES = max(settings.job_max_attempts - 1, 0)
JOB_RETRY_DELAY = settings.job_backoff_seconds

celery_app = Celery(
    "talk_proposals",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "talk_proposals.application.tasks.proposal_tasks",
        "talk_proposals.application.tasks.notification_tasks",
    ],
)

celery_app.conf.update(
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    result_expires=3600,  # Results expire after 1 hour
    task_serializer="json",
    accept_content=["json"],
)

