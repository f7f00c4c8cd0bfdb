from __future__ import annotations

from resto.application.ports.cache import CacheStore
from resto.infrastructure.cache.redis_client import get_redis_client


class RedisCacheStore(CacheStore):
    """Read-through cache entries kept under a ``resto:`` key prefix."""

    def __init__(self, prefix: str = "resto:", timeout_seconds: float = 1.0) -> None:
        self._prefix = prefix
        self._timeout_seconds = timeout_seconds

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        value = get_redis_client(timeout_seconds=self._timeout_seconds).get(self._key(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        get_redis_client(timeout_seconds=self._timeout_seconds).set(
            name=self._key(key),
            value=value,
            ex=max(1, ttl_seconds),
        )
