"""Redis Key-Value Store — async client wrapper with TTL writes and error mapping.

Invariants:
    - Every write carries an expiration (SET ... EX ttl); re-saving resets it
    - All redis exceptions mapped to StoreError (core/errors.py)
    - decode_responses=True: values cross this boundary as str

Design Decisions:
    - Instance lives on app.state (created in the FastAPI lifespan) instead of a module
      global; routes receive it through the get_store dependency
    - ping() never raises: it backs the readiness endpoint
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from soundround.core.errors import StoreError

logger = logging.getLogger(__name__)


class RedisKeyValueStore:
    """KeyValueStore implementation over redis.asyncio."""

    def __init__(self, client: Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as e:
            logger.error(f"Redis GET {key} failed: {e}")
            raise StoreError("Store unreachable", "get")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            logger.error(f"Redis SET {key} failed: {e}")
            raise StoreError("Store unreachable", "set")

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(key))
        except RedisError as e:
            logger.error(f"Redis EXISTS {key} failed: {e}")
            raise StoreError("Store unreachable", "exists")

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            logger.error(f"Redis DEL {key} failed: {e}")
            raise StoreError("Store unreachable", "delete")

    async def ping(self) -> bool:
        """Check store connectivity (for the readiness endpoint)."""
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
