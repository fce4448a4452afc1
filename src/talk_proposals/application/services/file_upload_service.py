"""
Proposal File Guard

Responsibility:
    Enforces domain rules on proposal PDF attachments beyond the
    request-level extension/MIME/size checks done by the API Layer:
    1. Signature check: content must start with the "%PDF" bytes
    2. Quota check: owner's attached files + new file <= per-user quota
    Also wraps the blob store for the store/delete/size/read operations.

Architecture Notes:
    - Part of Application Layer (Services)
    - Uses FileStorageProtocol (Infrastructure implements it)
    - Reads attached paths through a fresh unit of work (read-only)
    - Used by ProposalService (request path) and ProcessProposalFileJob
      (background re-validation)

Business Rules:
    - Signature check always precedes the quota check
    - A missing file contributes 0 bytes to the usage (logged, not an error)
    - A failure while scanning usage is logged and the partial sum is used
    - Re-validating a stored file excludes its own proposal from the scan

Known limitation:
    The quota check reads usage without locking. Two concurrent uploads
    by one user can both pass and jointly exceed the quota.
"""

import logging
from collections.abc import Callable

from talk_proposals.application.ports.file_storage import FileStorageProtocol
from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.config import BYTES_PER_MB
from talk_proposals.domain.shared.exceptions import (
    DomainValidationError,
    ProposalFileNotFoundError,
)

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF"
INVALID_PDF_MESSAGE = "File does not appear to be a valid PDF document"
DEFAULT_QUOTA_MB = 100


class FileUploadService:
    """
    Validates and stores proposal attachments.

    Attributes:
        storage: Blob store (injected)
        uow_factory: Callable returning a new unit of work (injected)
        quota_bytes: Per-user quota in bytes

    Examples:
        >>> service = FileUploadService(storage, uow_factory, quota_bytes=100 * 1024 * 1024)
        >>> path = service.store_and_validate(b"%PDF-1.4 ...", "talk.pdf", owner_id=7)
        >>> path
        'proposals/5b0e6e0c2f3a4c0d9a1b2c3d4e5f6a7b.pdf'
    """

    def __init__(
        self,
        storage: FileStorageProtocol,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        quota_bytes: int = DEFAULT_QUOTA_MB * BYTES_PER_MB,
    ) -> None:
        self.storage = storage
        self.uow_factory = uow_factory
        self.quota_bytes = quota_bytes

    # ========================================================================
    # DOMAIN VALIDATION
    # ========================================================================

    def validate_domain_rules(
        self,
        content: bytes,
        owner_id: int,
        exclude_proposal_id: int | None = None,
    ) -> None:
        """
        Check signature, then quota, of new file content.

        Raises:
            DomainValidationError: On signature mismatch or exceeded quota
        """
        self._check_signature(content[: len(PDF_SIGNATURE)])
        self._check_quota(len(content), owner_id, exclude_proposal_id)

    def validate_stored_file(
        self, path: str, owner_id: int, exclude_proposal_id: int | None = None
    ) -> None:
        """
        Re-validate a file already written to storage.

        Raises:
            ProposalFileNotFoundError: If the file is missing
            DomainValidationError: On signature mismatch or exceeded quota
        """
        if not self.storage.exists(path):
            raise ProposalFileNotFoundError(path)

        self._check_signature(self.storage.read_head(path, len(PDF_SIGNATURE)))
        self._check_quota(self.storage.size(path), owner_id, exclude_proposal_id)

    def current_usage(self, owner_id: int, exclude_proposal_id: int | None = None) -> int:
        """
        Total bytes of files attached to the owner's proposals.

        Missing files are skipped. A scan failure is logged and the
        partial sum collected so far is returned.
        """
        total = 0
        try:
            with self.uow_factory() as uow:
                paths = uow.proposals.file_paths_for_user(
                    owner_id, exclude_proposal_id=exclude_proposal_id
                )
            for path in paths:
                if not self.storage.exists(path):
                    logger.info(f"Skipping missing file in quota scan: {path}")
                    continue
                total += self.storage.size(path)
        except Exception as e:
            logger.warning(
                f"Error calculating storage usage for user {owner_id}: {e}"
            )
        return total

    def _check_signature(self, head: bytes) -> None:
        if head != PDF_SIGNATURE:
            raise DomainValidationError(INVALID_PDF_MESSAGE)

    def _check_quota(
        self, new_size: int, owner_id: int, exclude_proposal_id: int | None
    ) -> None:
        usage = self.current_usage(owner_id, exclude_proposal_id)
        if usage + new_size > self.quota_bytes:
            usage_mb = round(usage / BYTES_PER_MB, 2)
            quota_mb = round(self.quota_bytes / BYTES_PER_MB, 2)
            raise DomainValidationError(
                f"Storage quota exceeded. Current usage: {usage_mb} MB, "
                f"Max quota: {quota_mb} MB"
            )

    # ========================================================================
    # STORAGE OPERATIONS
    # ========================================================================

    def store(self, content: bytes, filename: str) -> str:
        path = self.storage.store(content, filename)
        logger.info(f"Stored proposal file {path} ({len(content)} bytes)")
        return path

    def store_and_validate(self, content: bytes, filename: str, owner_id: int) -> str:
        """Validate domain rules, then store. Nothing is written on failure."""
        self.validate_domain_rules(content, owner_id)
        return self.store(content, filename)

    def delete(self, path: str) -> bool:
        return self.storage.delete(path)

    def exists(self, path: str) -> bool:
        return self.storage.exists(path)

    def size(self, path: str) -> int:
        return self.storage.size(path)

    def read(self, path: str) -> bytes:
        return self.storage.read(path)
