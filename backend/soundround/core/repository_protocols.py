"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Implementations provided by shell via dependency injection
    - KeyValueStore.set always carries a TTL; there are no non-expiring writes

Design Decisions:
    - Protocol over ABC: structural subtyping, the test fake needs no inheritance
    - Async in Protocol: implementations do network IO
"""

from typing import Protocol


class KeyValueStore(Protocol):
    """Blob store with per-key expiration — implemented by infrastructure/redis_store.py."""
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...
    async def exists(self, key: str) -> bool: ...
    async def delete(self, key: str) -> None: ...
    async def ping(self) -> bool: ...
