"""
Background Job Executors

Framework-free job bodies. Celery task wrappers in application.tasks
add retry, backoff and permanent-failure handling around them.
"""

from talk_proposals.application.jobs.notifications import (
    NotifyProposalReviewedJob,
    NotifyProposalSubmittedJob,
    NotifyStatusChangedJob,
)
from talk_proposals.application.jobs.process_file import ProcessProposalFileJob
from talk_proposals.application.jobs.reindex import (
    ReindexProposalJob,
    RemoveProposalFromIndexJob,
)

__all__ = [
    "NotifyProposalReviewedJob",
    "NotifyProposalSubmittedJob",
    "NotifyStatusChangedJob",
    "ProcessProposalFileJob",
    "ReindexProposalJob",
    "RemoveProposalFromIndexJob",
]
