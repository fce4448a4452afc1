"""
Search Index Port

Full-text index of proposals. Documents come from
Proposal.to_search_document().
"""

from typing import Any, Protocol


class SearchIndexProtocol(Protocol):
    def upsert(self, document: dict[str, Any]) -> None:
        ...

    def remove(self, proposal_id: int) -> None:
        ...

    def query(self, text: str, filters: dict[str, Any] | None = None) -> list[int]:
        """
        Rank proposal ids matching text.

        Args:
            text: Free text search
            filters: Optional exact filters: user_id, status, tag_ids (any-of)

        Returns:
            Proposal ids, best match first
        """
        ...
