"""
Search Index Jobs

Both jobs reload state from the database by id and never trust the
snapshot carried by the event that queued them.
"""

import logging
from collections.abc import Callable

from talk_proposals.application.ports.search_index import SearchIndexProtocol
from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.domain.proposals.repositories import ALL_RELATIONS

logger = logging.getLogger(__name__)


class ReindexProposalJob:
    """
    Push the current state of one proposal to the search index.

    Skips silently when the proposal is gone or no longer searchable.
    Index failures propagate so the task wrapper can retry them.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        search_index: SearchIndexProtocol,
    ) -> None:
        self.uow_factory = uow_factory
        self.search_index = search_index

    def run(self, proposal_id: int) -> bool:
        """
        Returns:
            True if a document was upserted, False if the proposal was skipped
        """
        with self.uow_factory() as uow:
            proposal = uow.proposals.get(proposal_id, with_relations=ALL_RELATIONS)

        if proposal is None:
            logger.debug(f"Proposal {proposal_id} no longer exists, skipping reindex")
            return False
        if not proposal.is_searchable():
            logger.debug(f"Proposal {proposal_id} is not searchable, skipping reindex")
            return False

        self.search_index.upsert(proposal.to_search_document())
        logger.info(f"Proposal {proposal_id} indexed")
        return True


class RemoveProposalFromIndexJob:
    def __init__(self, search_index: SearchIndexProtocol) -> None:
        self.search_index = search_index

    def run(self, proposal_id: int) -> None:
        self.search_index.remove(proposal_id)
        logger.info(f"Proposal {proposal_id} removed from search index")
