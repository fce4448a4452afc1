"""
Cache Port

Read cache for derived listings. Implementations log and swallow
transport failures so callers fall through to the database.
"""

from typing import Any, Protocol


class CacheProtocol(Protocol):
    def get(self, key: str) -> Any | None:
        """Cached JSON-compatible value or None on miss."""
        ...

    def set(self, key: str, value: Any, ttl: int) -> None:
        ...

    def forget(self, key: str) -> None:
        ...

    def forget_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix and return how many were removed."""
        ...

    def ping(self) -> bool:
        """True when the backing store answers; never raises."""
        ...
