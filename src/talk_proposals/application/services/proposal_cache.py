"""
Cache Invalidation Layer

Key layout and invalidation rules of the derived read caches.

Keys:
    proposals:{id}               single proposal
    users:{id}:proposals         user-scoped listings
    proposals:top_rated:{limit}  top-rated listing, one entry per limit
    tags:all                     tag listing

Rules:
    - Any proposal create/update/delete, status change or new review
      forgets the proposal key, the owner's user key and every top-rated key
    - Tag create and tag sync forget tags:all
    - Population is lazy: compute on miss, store with a fixed TTL
"""

import logging
from collections.abc import Callable
from typing import Any

from talk_proposals.application.ports.cache import CacheProtocol

logger = logging.getLogger(__name__)

TOP_RATED_PREFIX = "proposals:top_rated:"
TAGS_KEY = "tags:all"


def proposal_key(proposal_id: int) -> str:
    return f"proposals:{proposal_id}"


def user_proposals_key(user_id: int) -> str:
    return f"users:{user_id}:proposals"


def top_rated_key(limit: int) -> str:
    return f"{TOP_RATED_PREFIX}{limit}"


class ProposalCache:
    def __init__(self, cache: CacheProtocol) -> None:
        self.cache = cache

    def remember(self, key: str, ttl: int, compute: Callable[[], Any]) -> Any:
        """
        Return cached value for key, computing and storing it on a miss.

        compute() must return JSON-compatible data.
        """
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        logger.debug(f"Cache miss: {key}")
        value = compute()
        self.cache.set(key, value, ttl)
        return value

    def forget_proposal(self, proposal_id: int, owner_id: int) -> None:
        self.cache.forget(proposal_key(proposal_id))
        self.cache.forget(user_proposals_key(owner_id))
        removed = self.cache.forget_prefix(TOP_RATED_PREFIX)
        logger.debug(
            f"Invalidated caches of proposal {proposal_id} "
            f"(owner {owner_id}, {removed} top-rated entries)"
        )

    def forget_tags(self) -> None:
        self.cache.forget(TAGS_KEY)
