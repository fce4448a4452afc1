"""
Redis Search Index

Proposal search documents kept in one Redis hash (field = proposal id,
value = JSON document) in the REDIS_SEARCH_DB database.

Ranking:
    Each query term scores 3 when found in the title, 2 in a tag name,
    1 in the description or speaker name. Ties favor newer proposals.

Error Handling:
    - Every RedisError is wrapped in TransientInfraError so background
      jobs retry it and request handlers can fall back to the database
"""

import json
import logging
import re
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from talk_proposals.domain.shared.exceptions import TransientInfraError

logger = logging.getLogger(__name__)

DEFAULT_INDEX_KEY = "search:proposals"
FIELD_WEIGHTS = (("title", 3), ("tags", 2), ("description", 1), ("user_name", 1))

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> list[str]:
    return [token.lower() for token in _TOKEN_RE.findall(text or "")]


class RedisSearchIndex:
    def __init__(self, redis: Redis, index_key: str = DEFAULT_INDEX_KEY) -> None:
        self.redis = redis
        self.index_key = index_key

    def upsert(self, document: dict[str, Any]) -> None:
        try:
            self.redis.hset(self.index_key, str(document["id"]), json.dumps(document))
        except RedisError as e:
            raise TransientInfraError("Search index unavailable", original_error=e) from e
        logger.debug(f"Upserted search document {document['id']}")

    def remove(self, proposal_id: int) -> None:
        try:
            self.redis.hdel(self.index_key, str(proposal_id))
        except RedisError as e:
            raise TransientInfraError("Search index unavailable", original_error=e) from e

    def count(self) -> int:
        try:
            return int(self.redis.hlen(self.index_key))
        except RedisError as e:
            raise TransientInfraError("Search index unavailable", original_error=e) from e

    def query(self, text: str, filters: dict[str, Any] | None = None) -> list[int]:
        """
        Rank ids of documents matching at least one term of text.

        Args:
            text: Free text search
            filters: Optional user_id, status, tag_ids (any-of); None values are ignored

        Returns:
            Proposal ids, best match first
        """
        terms = tokenize(text)
        if not terms:
            return []

        try:
            raw_documents = self.redis.hvals(self.index_key)
        except RedisError as e:
            raise TransientInfraError("Search index unavailable", original_error=e) from e

        filters = filters or {}
        scored: list[tuple[int, str, int]] = []
        for raw in raw_documents:
            document = json.loads(raw)
            if not self._matches_filters(document, filters):
                continue
            score = self._score(document, terms)
            if score > 0:
                scored.append((score, document.get("created_at") or "", document["id"]))

        scored.sort(key=lambda item: (item[0], item[1], item[2]), reverse=True)
        return [doc_id for _, _, doc_id in scored]

    @staticmethod
    def _matches_filters(document: dict[str, Any], filters: dict[str, Any]) -> bool:
        user_id = filters.get("user_id")
        if user_id is not None and document.get("user_id") != user_id:
            return False
        status = filters.get("status")
        if status is not None and document.get("status") != status:
            return False
        tag_ids = filters.get("tag_ids")
        if tag_ids and not set(tag_ids) & set(document.get("tag_ids") or []):
            return False
        return True

    @staticmethod
    def _score(document: dict[str, Any], terms: list[str]) -> int:
        score = 0
        for field, weight in FIELD_WEIGHTS:
            value = document.get(field)
            if isinstance(value, list):
                value = " ".join(value)
            tokens = set(tokenize(value or ""))
            score += weight * sum(1 for term in terms if term in tokens)
        return score
