"""
Tag Use Cases

Tags are created on demand (first use wins, exact case-sensitive name
match) and listed by name. The full listing is cached for TAGS_CACHE_TTL.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from talk_proposals.application.ports.unit_of_work import UnitOfWorkProtocol
from talk_proposals.application.services.proposal_cache import TAGS_KEY, ProposalCache
from talk_proposals.domain.proposals.entities import Tag
from talk_proposals.domain.shared.exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 50


class TagService:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWorkProtocol],
        cache: ProposalCache,
        tags_cache_ttl: int = 3600,
    ) -> None:
        self.uow_factory = uow_factory
        self.cache = cache
        self.tags_cache_ttl = tags_cache_ttl

    def create(self, name: str) -> Tag:
        """
        Return the tag called name, creating it on first use.

        Raises:
            ValidationError: Blank name or longer than 50 characters
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("The name field is required", field_name="name")
        if len(name) > MAX_TAG_LENGTH:
            raise ValidationError(
                f"The name may not be greater than {MAX_TAG_LENGTH} characters",
                field_name="name",
            )

        with self.uow_factory() as uow:
            tag = uow.tags.first_or_create(name)
            uow.commit()

        self.cache.forget_tags()
        logger.info(f"Tag '{tag.name}' ready (id={tag.id})")
        return tag

    def list(self, search: str | None = None) -> list[Tag]:
        """Tags ordered by name. Only the unfiltered listing is cached."""
        search = (search or "").strip() or None
        if search:
            with self.uow_factory() as uow:
                return uow.tags.list(search)

        def compute() -> list[dict]:
            with self.uow_factory() as uow:
                return [tag.to_dict() for tag in uow.tags.list()]

        rows = self.cache.remember(TAGS_KEY, self.tags_cache_ttl, compute)
        return [Tag(**row) for row in rows]
