"""Search index adapters."""

from talk_proposals.infrastructure.search.redis_search_index import RedisSearchIndex

__all__ = ["RedisSearchIndex"]
