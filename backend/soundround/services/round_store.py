"""Round Store Adapter — whole-blob load/save of Round records with TTL.

Invariants:
    - Key layout: round:<joinCode>; value is the full Round JSON
    - Every save resets the expiration to the configured TTL
    - No partial-field updates: callers load whole, mutate a copy, save whole
    - Mutations on one join code are serialized through RoundLocks.for_code()

Design Decisions:
    - Per-round asyncio.Lock closes the load-modify-save lost-update race inside one
      process. Multi-process deployments are out of scope; they would need a
      store-side primitive (WATCH/MULTI) instead
    - WeakValueDictionary: a lock disappears once no request holds it
"""

import asyncio
import logging
import weakref

from pydantic import ValidationError

from soundround.core.errors import ErrorContext, RoundNotFoundError, StoreError
from soundround.core.repository_protocols import KeyValueStore
from soundround.infrastructure.observability import log_context
from soundround.models.round import Round

logger = logging.getLogger(__name__)


def round_key(code: str) -> str:
    return f"round:{code}"


class RoundLocks:
    """One asyncio.Lock per join code, shared by all requests of the process."""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def for_code(self, code: str) -> asyncio.Lock:
        lock = self._locks.get(code)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[code] = lock
        return lock


class RoundStore:
    """load / save / exists for Round blobs."""

    def __init__(self, kv: KeyValueStore, ttl_seconds: int, locks: RoundLocks):
        self._kv = kv
        self._ttl = ttl_seconds
        self._locks = locks

    def lock(self, code: str) -> asyncio.Lock:
        return self._locks.for_code(code)

    async def exists(self, code: str) -> bool:
        return await self._kv.exists(round_key(code))

    async def load(self, code: str) -> Round:
        raw = await self._kv.get(round_key(code))
        if raw is None:
            raise RoundNotFoundError(code)
        try:
            return Round.from_blob(raw)
        except ValidationError as e:
            logger.error(
                f"Corrupt round blob for {code}: {e}",
                extra=log_context(round_code=code),
            )
            raise StoreError(
                "Failed to parse round data", "decode",
                ErrorContext(round_code=code),
            )

    async def save(self, round_: Round) -> Round:
        """Persist the full round; returns the saved copy with version bumped."""
        saved = round_.model_copy(update={"version": round_.version + 1})
        await self._kv.set(round_key(saved.join_code), saved.to_blob(), self._ttl)
        return saved
