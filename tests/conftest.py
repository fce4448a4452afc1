"""
Pytest Configuration and Shared Fixtures

Fixtures:
    - settings: Settings for an in-memory SQLite database and a temp storage dir
    - cache, job_queue, mailer, search_index, rate_limiter: In-memory fakes (tests/fakes.py)
    - container: Fully wired Container using the fakes above
    - speaker, other_speaker, reviewer, second_reviewer, admin: Persisted users
    - pdf_bytes: Minimal PDF payload (make_pdf lives in tests/fakes.py)

Architecture Notes:
    - No Redis, Celery broker or SMTP relay needed
    - Every test gets a fresh database (new in-memory engine per test)
    - Real LocalFileStorage under pytest's tmp_path

Usage:
    def test_something(container, speaker):
        proposal = container.proposal_service.submit(speaker, "Title", "Body")
"""

import logging

import pytest

from talk_proposals.bootstrap import build_container
from talk_proposals.config import Settings
from talk_proposals.domain.proposals.entities import User, UserRole
from talk_proposals.infrastructure.file_storage import LocalFileStorage
from tests.fakes import (
    FakeCache,
    FakeMailer,
    FakeRateLimiter,
    FakeSearchIndex,
    RecordingJobQueue,
    make_pdf,
)

# Configure logger for tests
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# ============================================================================
# SETTINGS & FAKES
# ============================================================================


@pytest.fixture
def settings(tmp_path):
    """Settings with a 1 MB per-user quota to keep quota tests small."""
    return Settings(
        database_url="sqlite://",
        storage_dir=str(tmp_path / "storage"),
        file_quota_per_user_mb=1,
        max_upload_size_mb=4,
        search_enabled=False,
    )


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def job_queue():
    return RecordingJobQueue()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def search_index():
    return FakeSearchIndex()


@pytest.fixture
def rate_limiter():
    return FakeRateLimiter()


@pytest.fixture
def storage(settings):
    return LocalFileStorage(settings.storage_dir)


@pytest.fixture
def container(settings, cache, job_queue, mailer, search_index, storage, rate_limiter):
    """Wired application on in-memory SQLite with in-memory fakes."""
    return build_container(
        settings,
        cache=cache,
        job_queue=job_queue,
        mailer=mailer,
        search_index=search_index,
        storage=storage,
        rate_limiter=rate_limiter,
    )


@pytest.fixture
def uow_factory(container):
    return container.uow_factory


# ============================================================================
# USERS
# ============================================================================


def _create_user(container, name: str, email: str, role: UserRole) -> User:
    with container.uow_factory() as uow:
        user = uow.users.add(User(name=name, email=email, role=role))
        uow.commit()
    return user


@pytest.fixture
def speaker(container):
    return _create_user(container, "Sam Speaker", "sam@example.com", UserRole.SPEAKER)


@pytest.fixture
def other_speaker(container):
    return _create_user(container, "Olive Other", "olive@example.com", UserRole.SPEAKER)


@pytest.fixture
def reviewer(container):
    return _create_user(container, "Rita Reviewer", "rita@example.com", UserRole.REVIEWER)


@pytest.fixture
def second_reviewer(container):
    return _create_user(container, "Rob Reviewer", "rob@example.com", UserRole.REVIEWER)


@pytest.fixture
def admin(container):
    return _create_user(container, "Ada Admin", "ada@example.com", UserRole.ADMIN)


# ============================================================================
# FILES
# ============================================================================

@pytest.fixture
def pdf_bytes():
    return make_pdf()
