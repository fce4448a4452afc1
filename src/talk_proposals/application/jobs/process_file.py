"""
Proposal File Post-Processing Job

Re-validates an attachment that the request path already stored:
PDF signature and owner quota (excluding the proposal itself).

Failure policy:
    - Missing file or failed validation: delete the file, detach it from
      the proposal, log, re-raise (permanent, never retried)
    - Any other error propagates for retry; once retries are exhausted
      the task wrapper calls cleanup() which deletes the file again
"""

import logging
from collections.abc import Callable

from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.application.services.file_upload_service import FileUploadService
from talk_proposals.application.services.proposal_cache import ProposalCache
from talk_proposals.domain.shared.exceptions import DomainValidationError, NotFoundError

logger = logging.getLogger(__name__)


class ProcessProposalFileJob:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        files: FileUploadService,
        cache: ProposalCache,
    ) -> None:
        self.uow_factory = uow_factory
        self.files = files
        self.cache = cache

    def run(self, proposal_id: int, file_path: str, owner_id: int) -> None:
        """
        Raises:
            ProposalFileNotFoundError: File is not in storage
            DomainValidationError: File is not a PDF or exceeds quota
        """
        try:
            self.files.validate_stored_file(
                file_path, owner_id, exclude_proposal_id=proposal_id
            )
        except (DomainValidationError, NotFoundError) as e:
            logger.error(
                f"Failed to process file {file_path} of proposal {proposal_id}: {e.message}"
            )
            self.cleanup(file_path)
            self._detach(proposal_id, file_path)
            raise

        logger.info(f"Proposal {proposal_id} file processed successfully: {file_path}")

    def cleanup(self, file_path: str) -> None:
        """Delete the file if it still exists. Never raises."""
        try:
            if self.files.exists(file_path):
                self.files.delete(file_path)
        except Exception as e:
            logger.warning(f"Failed to clean up file {file_path}: {e}")

    def _detach(self, proposal_id: int, file_path: str) -> None:
        """Clear file_path if the proposal still points at the rejected file."""
        with self.uow_factory() as uow:
            proposal = uow.proposals.get(proposal_id)
            if proposal is None or proposal.file_path != file_path:
                return
            proposal.file_path = None
            uow.proposals.update(proposal)
            uow.commit()
        self.cache.forget_proposal(proposal.id, proposal.user_id)
        logger.warning(f"Detached rejected file {file_path} from proposal {proposal_id}")
