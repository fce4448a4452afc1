"""
Tests for FileUploadService (PDF signature and per-user quota guard).

Covers:
- Signature check precedes the quota check
- Quota boundary: usage + new size <= quota passes, one byte more fails
- Missing files contribute 0 bytes
- Scan failures fall back to the partial sum
- Re-validation of stored files excludes their own proposal
"""

from unittest.mock import MagicMock

import pytest

from talk_proposals.application.services.file_upload_service import (
    INVALID_PDF_MESSAGE,
    FileUploadService,
)
from talk_proposals.config import BYTES_PER_MB
from talk_proposals.domain.proposals.entities import Proposal
from talk_proposals.domain.shared.exceptions import (
    DomainValidationError,
    ProposalFileNotFoundError,
)
from tests.fakes import make_pdf

QUOTA = 1 * BYTES_PER_MB


# ============================================================================
# HELPERS
# ============================================================================


def attach_file(container, owner, size: int) -> Proposal:
    """Persist a proposal of owner with a stored file of `size` bytes."""
    path = container.storage.store(make_pdf(size), "talk.pdf")
    with container.uow_factory() as uow:
        proposal = uow.proposals.add(
            Proposal(user_id=owner.id, title="Existing", description="d", file_path=path)
        )
        uow.commit()
    return proposal


def stored_files(container) -> list:
    root = container.storage.base_dir
    return [p for p in root.rglob("*") if p.is_file()] if root.exists() else []


# ============================================================================
# SIGNATURE
# ============================================================================


def test_valid_pdf_passes(container, speaker):
    container.file_service.validate_domain_rules(make_pdf(2048), speaker.id)


@pytest.mark.parametrize("content", [b"PK\x03\x04zip", b"", b"%PD", b" %PDF-1.4"])
def test_non_pdf_content_is_rejected(container, speaker, content):
    with pytest.raises(DomainValidationError) as exc_info:
        container.file_service.validate_domain_rules(content, speaker.id)

    assert exc_info.value.message == INVALID_PDF_MESSAGE


def test_signature_is_checked_before_quota(container, speaker):
    """An oversized non-PDF reports the signature error, not the quota error."""
    attach_file(container, speaker, QUOTA)

    with pytest.raises(DomainValidationError) as exc_info:
        container.file_service.validate_domain_rules(b"not a pdf", speaker.id)

    assert exc_info.value.message == INVALID_PDF_MESSAGE


# ============================================================================
# QUOTA
# ============================================================================


def test_upload_exactly_filling_quota_passes(container, speaker):
    attach_file(container, speaker, 600_000)

    container.file_service.validate_domain_rules(make_pdf(QUOTA - 600_000), speaker.id)


def test_upload_one_byte_over_quota_fails_with_mb_figures(container, speaker):
    attach_file(container, speaker, 600_000)

    with pytest.raises(DomainValidationError) as exc_info:
        container.file_service.validate_domain_rules(
            make_pdf(QUOTA - 600_000 + 1), speaker.id
        )

    message = exc_info.value.message
    assert message.startswith("Storage quota exceeded.")
    assert "Current usage: 0.57 MB" in message
    assert "Max quota: 1.0 MB" in message


def test_quota_is_per_user(container, speaker, other_speaker):
    attach_file(container, other_speaker, 900_000)

    container.file_service.validate_domain_rules(make_pdf(900_000), speaker.id)


def test_missing_files_count_as_zero(container, speaker):
    proposal = attach_file(container, speaker, 900_000)
    container.storage.delete(proposal.file_path)

    assert container.file_service.current_usage(speaker.id) == 0
    container.file_service.validate_domain_rules(make_pdf(900_000), speaker.id)


def test_current_usage_sums_attached_files(container, speaker):
    attach_file(container, speaker, 1000)
    attach_file(container, speaker, 2500)

    assert container.file_service.current_usage(speaker.id) == 3500


def test_current_usage_excludes_given_proposal(container, speaker):
    keep = attach_file(container, speaker, 1000)
    attach_file(container, speaker, 2500)

    assert container.file_service.current_usage(speaker.id, exclude_proposal_id=keep.id) == 2500


def test_scan_failure_is_logged_and_partial_sum_used(storage, caplog):
    uow_factory = MagicMock(side_effect=RuntimeError("database gone"))
    service = FileUploadService(storage, uow_factory, quota_bytes=QUOTA)

    assert service.current_usage(owner_id=1) == 0
    assert "Error calculating storage usage for user 1" in caplog.text
    service.validate_domain_rules(make_pdf(1000), owner_id=1)


# ============================================================================
# STORAGE OPERATIONS
# ============================================================================


def test_store_and_validate_writes_nothing_on_failure(container, speaker):
    with pytest.raises(DomainValidationError):
        container.file_service.store_and_validate(b"nope", "talk.pdf", speaker.id)

    assert stored_files(container) == []


def test_store_and_validate_returns_readable_path(container, speaker, pdf_bytes):
    path = container.file_service.store_and_validate(pdf_bytes, "talk.pdf", speaker.id)

    assert path.startswith("proposals/") and path.endswith(".pdf")
    assert container.file_service.read(path) == pdf_bytes
    assert container.file_service.size(path) == len(pdf_bytes)


def test_delete_missing_file_returns_false(container):
    assert container.file_service.delete("proposals/missing.pdf") is False


def test_validate_stored_file_missing_raises_not_found(container, speaker):
    with pytest.raises(ProposalFileNotFoundError):
        container.file_service.validate_stored_file("proposals/gone.pdf", speaker.id)


def test_validate_stored_file_does_not_count_itself(container, speaker):
    """A 900 KB file attached to its own proposal re-validates under a 1 MB quota."""
    proposal = attach_file(container, speaker, 900_000)

    container.file_service.validate_stored_file(
        proposal.file_path, speaker.id, exclude_proposal_id=proposal.id
    )
