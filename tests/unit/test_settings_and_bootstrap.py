"""
Tests for Settings.from_env() and the composition root.
"""

import __future__
import importlib

import pytest

from talk_proposals import bootstrap
from talk_proposals.config import Settings
from talk_proposals.infrastructure.search import RedisSearchIndex


def test_defaults(monkeypatch):
    for name in ("FILE_QUOTA_PER_USER_MB", "TOP_RATED_MIN_RATING", "SEARCH_ENABLED"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.file_quota_bytes == 100 * 1024 * 1024
    assert settings.top_rated_min_rating == 4.0
    assert settings.search_enabled is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FILE_QUOTA_PER_USER_MB", "50")
    monkeypatch.setenv("TOP_RATED_MIN_RATING", "4.5")
    monkeypatch.setenv("SEARCH_ENABLED", "yes")
    monkeypatch.setenv("SMTP_USERNAME", "")

    settings = Settings.from_env()

    assert settings.file_quota_bytes == 52428800
    assert settings.top_rated_min_rating == 4.5
    assert settings.search_enabled is True
    assert settings.smtp_username is None


def test_build_container_wires_search_only_when_enabled(settings, cache, job_queue, mailer, storage):
    disabled = bootstrap.build_container(
        settings, cache=cache, job_queue=job_queue, mailer=mailer, storage=storage
    )
    enabled = bootstrap.build_container(
        Settings(database_url="sqlite://", storage_dir=settings.storage_dir, search_enabled=True),
        cache=cache,
        job_queue=job_queue,
        mailer=mailer,
        storage=storage,
    )

    assert isinstance(disabled.search_index, RedisSearchIndex)
    assert disabled.proposal_service.search_index is None
    assert enabled.proposal_service.search_index is enabled.search_index


def test_container_singleton(container):
    bootstrap.set_container(container)
    try:
        assert bootstrap.get_container() is container
    finally:
        bootstrap.set_container(None)


@pytest.mark.parametrize("attr", ["proposal_service", "admin_proposal_service", "review_service"])
def test_services_share_one_event_bus(container, attr):
    assert getattr(container, attr).events is container.event_bus


def test_rate_limit_overrides(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "120")
    monkeypatch.setenv("RATE_LIMIT_PROPOSALS_PER_HOUR", "3")

    settings = Settings.from_env()

    assert settings.rate_limit_enabled is False
    assert settings.rate_limit_per_minute == 120
    assert settings.rate_limit_proposals_per_hour == 3


@pytest.mark.parametrize(
    "module_name",
    [
        "talk_proposals.domain.proposals.repositories",
        "talk_proposals.application.services.proposal_service",
        "talk_proposals.application.services.review_service",
        "talk_proposals.application.services.admin_proposal_service",
        "talk_proposals.application.services.tag_service",
        "talk_proposals.infrastructure.persistence.sqlalchemy.repositories",
    ],
)
def test_annotations_are_postponed(module_name):
    module = importlib.import_module(module_name)

    assert module.annotations is __future__.annotations
