"""
Application Layer Ports (Interfaces)

Contains Protocol definitions for dependency inversion.
Infrastructure Layer implements these protocols.
"""

from talk_proposals.application.ports.cache import CacheProtocol
from talk_proposals.application.ports.file_storage import FileStorageProtocol
from talk_proposals.application.ports.job_queue import JobQueueProtocol
from talk_proposals.application.ports.mailer import MailerProtocol, MailMessage
from talk_proposals.application.ports.rate_limiter import RateLimiterProtocol, RateLimitStatus
from talk_proposals.application.ports.search_index import SearchIndexProtocol
from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol

__all__ = [
    "CacheProtocol",
    "FileStorageProtocol",
    "JobQueueProtocol",
    "MailerProtocol",
    "MailMessage",
    "RateLimiterProtocol",
    "RateLimitStatus",
    "SearchIndexProtocol",
    "UnitOfWorkProtocol",
]
