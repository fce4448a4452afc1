"""
Tests for ProposalService (speaker-facing use cases).

Covers:
- submit: pending status, tags, file storage, event fan-out, cleanup on failure
- update: tag sync semantics, attachment replacement, permissions
- delete: row + file removal, index removal job
- get/list: visibility rules, filters, search index and its fallback
- top_rated: threshold, ordering, caching and invalidation
"""

from pathlib import Path

import pytest

from talk_proposals.application.models import JobName
from talk_proposals.application.services import ProposalService, UploadedFile
from talk_proposals.application.services.proposal_cache import top_rated_key
from talk_proposals.domain.proposals.entities import ProposalStatus
from talk_proposals.domain.shared.exceptions import (
    AuthorizationError,
    DomainValidationError,
    PersistenceError,
    ProposalFileNotFoundError,
    ProposalNotFoundError,
    TransientInfraError,
    ValidationError,
)
from talk_proposals.infrastructure.persistence.sqlalchemy.repositories import (
    SqlAlchemyProposalRepository,
)
from tests.fakes import FakeSearchIndex, make_pdf


# ============================================================================
# HELPERS
# ============================================================================


def stored_files(container) -> list[Path]:
    root = container.storage.base_dir
    return [p for p in root.rglob("*") if p.is_file()] if root.exists() else []


def pdf(name: str = "talk.pdf", size: int = 2048) -> UploadedFile:
    return UploadedFile(content=make_pdf(size), filename=name)


@pytest.fixture
def service(container) -> ProposalService:
    return container.proposal_service


# ============================================================================
# SUBMIT
# ============================================================================


def test_submit_creates_pending_proposal_with_tags(service, speaker, job_queue):
    proposal = service.submit(
        speaker, "Async Python", "Event loops", tags=["python", "async", "python", " "]
    )

    assert proposal.id is not None
    assert proposal.status == ProposalStatus.PENDING
    assert proposal.user.id == speaker.id
    assert [tag.name for tag in proposal.tags] == ["async", "python"]
    assert proposal.file_path is None


def test_submit_without_file_skips_file_processing(service, speaker, job_queue):
    proposal = service.submit(speaker, "Title", "Body")

    assert job_queue.names == [JobName.REINDEX_PROPOSAL, JobName.NOTIFY_PROPOSAL_SUBMITTED]
    assert job_queue.payloads(JobName.NOTIFY_PROPOSAL_SUBMITTED) == [
        {"proposal_id": proposal.id}
    ]


def test_submit_with_file_enqueues_jobs_in_listener_order(service, speaker, job_queue):
    proposal = service.submit(speaker, "Title", "Body", file=pdf())

    assert job_queue.names == [
        JobName.PROCESS_PROPOSAL_FILE,
        JobName.REINDEX_PROPOSAL,
        JobName.NOTIFY_PROPOSAL_SUBMITTED,
    ]
    assert job_queue.payloads(JobName.PROCESS_PROPOSAL_FILE) == [
        {"proposal_id": proposal.id, "file_path": proposal.file_path, "owner_id": speaker.id}
    ]
    assert service.files.exists(proposal.file_path)


def test_submit_invalidates_caches(service, speaker, cache):
    proposal = service.submit(speaker, "Title", "Body", tags=["python"])

    assert f"proposals:{proposal.id}" in cache.forgotten
    assert f"users:{speaker.id}:proposals" in cache.forgotten
    assert "proposals:top_rated:*" in cache.forgotten
    assert "tags:all" in cache.forgotten


def test_submit_non_pdf_is_rejected_without_side_effects(service, container, speaker, job_queue):
    with pytest.raises(DomainValidationError):
        service.submit(
            speaker, "Title", "Body", file=UploadedFile(content=b"PK\x03\x04", filename="a.pdf")
        )

    page = service.list(speaker)
    assert page.total == 0
    assert stored_files(container) == []
    assert job_queue.jobs == []


def test_submit_over_quota_is_rejected(service, container, speaker):
    service.submit(speaker, "First", "Body", file=pdf(size=800_000))

    with pytest.raises(DomainValidationError) as exc_info:
        service.submit(speaker, "Second", "Body", file=pdf(size=300_000))

    assert "Storage quota exceeded" in exc_info.value.message
    assert len(stored_files(container)) == 1


def test_submit_persistence_failure_removes_stored_file(
    service, container, speaker, job_queue, monkeypatch
):
    def broken_add(self, proposal):
        raise PersistenceError("Database transaction failed")

    monkeypatch.setattr(SqlAlchemyProposalRepository, "add", broken_add)

    with pytest.raises(PersistenceError):
        service.submit(speaker, "Title", "Body", file=pdf())

    assert stored_files(container) == []
    assert job_queue.jobs == []


def test_submit_event_failure_does_not_fail_request(service, speaker, job_queue):
    job_queue.fail = True

    proposal = service.submit(speaker, "Title", "Body")

    assert proposal.id is not None


def test_update_survives_broker_outage(service, speaker, job_queue, caplog):
    proposal = service.submit(speaker, "Title", "Body")
    job_queue.fail = True

    updated = service.update(speaker, proposal.id, title="New")

    assert updated.title == "New"
    assert service.get(speaker, proposal.id).title == "New"
    assert "Could not enqueue proposals.reindex" in caplog.text


def test_update_queues_reindex_when_file_job_enqueue_fails(
    service, speaker, job_queue, monkeypatch
):
    proposal = service.submit(speaker, "Title", "Body")
    job_queue.clear()
    record = job_queue.enqueue

    def enqueue(job, payload):
        if job is JobName.PROCESS_PROPOSAL_FILE:
            raise TransientInfraError("broker down")
        return record(job, payload)

    monkeypatch.setattr(job_queue, "enqueue", enqueue)

    service.update(speaker, proposal.id, file=pdf())

    assert job_queue.names == [JobName.REINDEX_PROPOSAL]


def test_delete_survives_broker_outage(service, speaker, job_queue, caplog):
    proposal = service.submit(speaker, "Title", "Body")
    job_queue.fail = True

    service.delete(speaker, proposal.id)

    with pytest.raises(ProposalNotFoundError):
        service.get(speaker, proposal.id)
    assert "Could not enqueue proposals.remove_from_index" in caplog.text


# ============================================================================
# UPDATE
# ============================================================================


def test_update_without_tags_leaves_tags_untouched(service, speaker):
    proposal = service.submit(speaker, "Title", "Body", tags=["python"])

    updated = service.update(speaker, proposal.id, title="New title")

    assert updated.title == "New title"
    assert [tag.name for tag in updated.tags] == ["python"]


def test_update_with_empty_tags_clears_them(service, speaker):
    proposal = service.submit(speaker, "Title", "Body", tags=["python", "async"])

    updated = service.update(speaker, proposal.id, tags=[])

    assert updated.tags == []


def test_update_replaces_full_tag_set(service, speaker):
    proposal = service.submit(speaker, "Title", "Body", tags=["python", "async"])

    updated = service.update(speaker, proposal.id, tags=["rust"])

    assert [tag.name for tag in updated.tags] == ["rust"]


def test_update_forgets_tags_only_when_tags_given(service, speaker, cache):
    proposal = service.submit(speaker, "Title", "Body")
    cache.forgotten.clear()

    service.update(speaker, proposal.id, title="Changed")
    assert "tags:all" not in cache.forgotten
    assert f"proposals:{proposal.id}" in cache.forgotten

    service.update(speaker, proposal.id, tags=["python"])
    assert "tags:all" in cache.forgotten


def test_update_queues_reindex_when_changed(service, speaker, job_queue):
    proposal = service.submit(speaker, "Title", "Body")
    job_queue.clear()

    service.update(speaker, proposal.id, description="Longer body")

    assert job_queue.names == [JobName.REINDEX_PROPOSAL]


def test_update_replacing_file_deletes_old_one(service, speaker, job_queue):
    proposal = service.submit(speaker, "Title", "Body", file=pdf())
    old_path = proposal.file_path
    job_queue.clear()

    updated = service.update(speaker, proposal.id, file=pdf("v2.pdf"))

    assert updated.file_path != old_path
    assert not service.files.exists(old_path)
    assert service.files.exists(updated.file_path)
    assert job_queue.names == [JobName.PROCESS_PROPOSAL_FILE, JobName.REINDEX_PROPOSAL]
    assert job_queue.payloads(JobName.PROCESS_PROPOSAL_FILE)[0]["file_path"] == updated.file_path


def test_update_replacement_does_not_count_current_file(service, speaker):
    """Replacing a 900 KB file with another 900 KB file fits a 1 MB quota."""
    proposal = service.submit(speaker, "Title", "Body", file=pdf(size=900_000))

    updated = service.update(speaker, proposal.id, file=pdf(size=900_000))

    assert updated.file_path != proposal.file_path


def test_update_with_invalid_file_keeps_proposal_unchanged(service, container, speaker):
    proposal = service.submit(speaker, "Title", "Body", file=pdf())

    with pytest.raises(DomainValidationError):
        service.update(
            speaker,
            proposal.id,
            title="Changed",
            file=UploadedFile(content=b"garbage", filename="x.pdf"),
        )

    current = service.get(speaker, proposal.id)
    assert current.title == "Title"
    assert current.file_path == proposal.file_path
    assert len(stored_files(container)) == 1


def test_other_speaker_cannot_update(service, speaker, other_speaker):
    proposal = service.submit(speaker, "Title", "Body")

    with pytest.raises(AuthorizationError):
        service.update(other_speaker, proposal.id, title="Hijacked")

    assert service.get(speaker, proposal.id).title == "Title"


def test_admin_can_update_any_proposal(service, speaker, admin):
    proposal = service.submit(speaker, "Title", "Body")

    updated = service.update(admin, proposal.id, title="Edited by admin")

    assert updated.title == "Edited by admin"


def test_update_unknown_proposal(service, speaker):
    with pytest.raises(ProposalNotFoundError):
        service.update(speaker, 999, title="x")


# ============================================================================
# DELETE
# ============================================================================


def test_delete_removes_row_and_file(service, speaker, job_queue):
    proposal = service.submit(speaker, "Title", "Body", file=pdf())
    job_queue.clear()

    service.delete(speaker, proposal.id)

    with pytest.raises(ProposalNotFoundError):
        service.get(speaker, proposal.id)
    assert not service.files.exists(proposal.file_path)
    assert job_queue.jobs == [
        (JobName.REMOVE_PROPOSAL_FROM_INDEX, {"proposal_id": proposal.id})
    ]


def test_delete_with_missing_file_still_succeeds(service, speaker):
    proposal = service.submit(speaker, "Title", "Body", file=pdf())
    service.files.delete(proposal.file_path)

    service.delete(speaker, proposal.id)

    with pytest.raises(ProposalNotFoundError):
        service.get(speaker, proposal.id)


def test_other_speaker_cannot_delete(service, speaker, other_speaker):
    proposal = service.submit(speaker, "Title", "Body")

    with pytest.raises(AuthorizationError):
        service.delete(other_speaker, proposal.id)

    assert service.get(speaker, proposal.id).id == proposal.id


# ============================================================================
# GET & LIST
# ============================================================================


def test_reviewer_and_admin_can_view_any_proposal(service, speaker, reviewer, admin):
    proposal = service.submit(speaker, "Title", "Body")

    assert service.get(reviewer, proposal.id).id == proposal.id
    assert service.get(admin, proposal.id).id == proposal.id


def test_other_speaker_cannot_view(service, speaker, other_speaker):
    proposal = service.submit(speaker, "Title", "Body")

    with pytest.raises(AuthorizationError):
        service.get(other_speaker, proposal.id)


def test_speaker_lists_only_own_proposals(service, speaker, other_speaker, admin):
    service.submit(speaker, "Mine", "Body")
    service.submit(other_speaker, "Theirs", "Body")

    assert [p.title for p in service.list(speaker).items] == ["Mine"]
    assert service.list(admin).total == 2


def test_list_is_newest_first_and_paginated(service, speaker):
    for i in range(5):
        service.submit(speaker, f"Talk {i}", "Body")

    page = service.list(speaker, page=2, per_page=2)

    assert page.total == 5
    assert page.last_page == 3
    assert [p.title for p in page.items] == ["Talk 2", "Talk 1"]


def test_list_filters_by_status_and_tags(service, speaker, admin):
    first = service.submit(speaker, "First", "Body", tags=["python"])
    service.submit(speaker, "Second", "Body", tags=["rust"])
    python_tag_id = first.tags[0].id

    tagged = service.list(admin, tag_ids=[python_tag_id])
    assert [p.title for p in tagged.items] == ["First"]

    assert service.list(admin, status="approved").total == 0
    assert service.list(admin, status="pending").total == 2


def test_list_rejects_invalid_status(service, speaker):
    with pytest.raises(ValidationError):
        service.list(speaker, status="archived")


@pytest.mark.parametrize("page, per_page", [(0, 15), (1, 0), (1, 101)])
def test_list_rejects_invalid_pagination(service, speaker, page, per_page):
    with pytest.raises(ValidationError):
        service.list(speaker, page=page, per_page=per_page)


def test_search_without_index_matches_title(service, speaker):
    service.submit(speaker, "Async Python in practice", "Body")
    service.submit(speaker, "Rust for Pythonistas", "Body")

    titles = [p.title for p in service.list(speaker, search="async").items]

    assert titles == ["Async Python in practice"]


def test_search_uses_index_when_configured(container, speaker):
    index = FakeSearchIndex()
    service = ProposalService(
        container.uow_factory,
        container.file_service,
        container.proposal_cache,
        container.event_bus,
        container.job_queue,
        search_index=index,
    )
    first = service.submit(speaker, "Title one", "About generators")
    second = service.submit(speaker, "Title two", "About decorators")
    index.upsert(first.to_search_document())
    index.upsert(second.to_search_document())

    titles = [p.title for p in service.list(speaker, search="decorators").items]

    assert titles == ["Title two"]


def test_search_results_follow_index_ranking(container, speaker, monkeypatch):
    index = FakeSearchIndex()
    service = ProposalService(
        container.uow_factory,
        container.file_service,
        container.proposal_cache,
        container.event_bus,
        container.job_queue,
        search_index=index,
    )
    older = service.submit(speaker, "Best match (older)", "Body")
    newer = service.submit(speaker, "Weaker match (newer)", "Body")
    monkeypatch.setattr(index, "query", lambda text, filters: [older.id, newer.id])

    titles = [p.title for p in service.list(speaker, search="match").items]

    assert titles == ["Best match (older)", "Weaker match (newer)"]


def test_search_falls_back_to_title_when_index_unavailable(container, speaker):
    service = ProposalService(
        container.uow_factory,
        container.file_service,
        container.proposal_cache,
        container.event_bus,
        container.job_queue,
        search_index=FakeSearchIndex(fail=True),
    )
    service.submit(speaker, "Decorators explained", "Body")

    titles = [p.title for p in service.list(speaker, search="decorators").items]

    assert titles == ["Decorators explained"]


def test_list_for_review_requires_reviewer(service, speaker, reviewer):
    service.submit(speaker, "Title", "Body")

    with pytest.raises(AuthorizationError):
        service.list_for_review(speaker)
    assert service.list_for_review(reviewer).total == 1


# ============================================================================
# TOP RATED
# ============================================================================


def _approve(container, admin, proposal_id):
    container.admin_proposal_service.update_status(admin, proposal_id, "approved")


def test_top_rated_threshold_and_order(container, service, speaker, reviewer, second_reviewer, admin):
    great = service.submit(speaker, "Great", "Body")
    good = service.submit(speaker, "Good", "Body")
    weak = service.submit(speaker, "Weak", "Body")
    pending = service.submit(speaker, "Pending but loved", "Body")
    for proposal in (great, good, weak):
        _approve(container, admin, proposal.id)

    reviews = container.review_service
    reviews.create(reviewer, great.id, 10)
    reviews.create(second_reviewer, great.id, 5)
    reviews.create(reviewer, good.id, 4)
    reviews.create(reviewer, weak.id, 3)
    reviews.create(reviewer, pending.id, 10)

    rows = service.top_rated(limit=10)

    assert [row.proposal["title"] for row in rows] == ["Great", "Good"]
    assert rows[0].average_rating == pytest.approx(7.5)
    assert rows[0].reviews_count == 2


def test_top_rated_is_cached_and_invalidated_by_reviews(
    container, service, speaker, reviewer, second_reviewer, admin, cache
):
    proposal = service.submit(speaker, "Great", "Body")
    _approve(container, admin, proposal.id)
    container.review_service.create(reviewer, proposal.id, 5)

    service.top_rated(limit=5)
    assert top_rated_key(5) in cache.store
    assert cache.ttls[top_rated_key(5)] == container.settings.top_rated_cache_ttl

    container.review_service.create(second_reviewer, proposal.id, 4)
    assert top_rated_key(5) not in cache.store

    rows = service.top_rated(limit=5)
    assert rows[0].reviews_count == 2


@pytest.mark.parametrize("limit", [0, 51, -3])
def test_top_rated_limit_bounds(service, limit):
    with pytest.raises(ValidationError):
        service.top_rated(limit=limit)


# ============================================================================
# FILE DOWNLOAD
# ============================================================================


def test_open_file_returns_content(service, speaker):
    upload = pdf()
    proposal = service.submit(speaker, "Title", "Body", file=upload)

    stored = service.open_file(speaker, proposal.id)

    assert stored.content == upload.content
    assert stored.media_type == "application/pdf"


def test_open_file_without_attachment(service, speaker):
    proposal = service.submit(speaker, "Title", "Body")

    with pytest.raises(ProposalFileNotFoundError) as exc_info:
        service.open_file(speaker, proposal.id)

    assert exc_info.value.message == f"Proposal {proposal.id} has no attached file"
    assert exc_info.value.file_path is None
