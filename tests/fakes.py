"""
In-memory test doubles for the application ports.

Each fake records what it was asked to do so tests can assert on the
side effects (cache keys forgotten, jobs queued, mails sent, documents
indexed) without Redis, Celery or an SMTP relay.
"""

from typing import Any, Optional

from talk_proposals.application.models import JobName
from talk_proposals.application.ports.mailer import MailMessage
from talk_proposals.application.ports.rate_limiter import RateLimitStatus
from talk_proposals.domain.shared.exceptions import TransientInfraError


class FakeCache:
    def __init__(self) -> None:
        self.healthy = True
        self.store: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}
        self.forgotten: list[str] = []

    def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    def set(self, key: str, value: Any, ttl: int) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    def forget(self, key: str) -> None:
        self.forgotten.append(key)
        self.store.pop(key, None)

    def forget_prefix(self, prefix: str) -> int:
        self.forgotten.append(f"{prefix}*")
        keys = [key for key in self.store if key.startswith(prefix)]
        for key in keys:
            del self.store[key]
        return len(keys)

    def ping(self) -> bool:
        return self.healthy


class RecordingJobQueue:
    def __init__(self, fail: bool = False) -> None:
        self.jobs: list[tuple[JobName, dict]] = []
        self.fail = fail

    def enqueue(self, job: JobName, payload: dict) -> Optional[str]:
        if self.fail:
            raise TransientInfraError(f"Could not enqueue {job.value}")
        self.jobs.append((job, dict(payload)))
        return f"job-{len(self.jobs)}"

    @property
    def names(self) -> list[JobName]:
        return [job for job, _ in self.jobs]

    def payloads(self, job: JobName) -> list[dict]:
        return [payload for name, payload in self.jobs if name == job]

    def clear(self) -> None:
        self.jobs.clear()


class FakeMailer:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[MailMessage] = []
        self.fail = fail
        self.attempts = 0

    def send(self, message: MailMessage) -> None:
        self.attempts += 1
        if self.fail:
            raise TransientInfraError("Mail relay unavailable")
        self.sent.append(message)


class FakeSearchIndex:
    """Substring search over title and description."""

    def __init__(self, fail: bool = False) -> None:
        self.documents: dict[int, dict] = {}
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise TransientInfraError("Search index unavailable")

    def upsert(self, document: dict) -> None:
        self._check()
        self.documents[document["id"]] = document

    def remove(self, proposal_id: int) -> None:
        self._check()
        self.documents.pop(proposal_id, None)

    def query(self, text: str, filters: Optional[dict] = None) -> list[int]:
        self._check()
        filters = filters or {}
        needle = text.lower()
        hits = []
        for doc in self.documents.values():
            if filters.get("user_id") is not None and doc["user_id"] != filters["user_id"]:
                continue
            if filters.get("status") and doc["status"] != filters["status"]:
                continue
            haystack = f"{doc['title']} {doc['description']}".lower()
            if needle in haystack:
                hits.append(doc["id"])
        return hits


class FakeRateLimiter:
    """Counters without expiry: one window lasts the whole test."""

    def __init__(self) -> None:
        self.hits: dict[str, int] = {}

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitStatus:
        self.hits[key] = self.hits.get(key, 0) + 1
        return RateLimitStatus(limit=limit, hits=self.hits[key], reset_after=window_seconds)


def make_pdf(size: int = 1024) -> bytes:
    """PDF-signed payload of exactly `size` bytes."""
    header = b"%PDF-1.4\n"
    return header + b"0" * max(size - len(header), 0)
