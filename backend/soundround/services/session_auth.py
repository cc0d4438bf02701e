"""Session Authenticator — opaque bearer tokens mapped to participant sessions.

Invariants:
    - resolve() never raises: missing/unknown/expired/corrupt/unreachable -> None
    - issue() always mints a new token; an existing one is never reused
    - Session records live under session:<token> with the round TTL
    - A failed session write is reported in IssuedSession.warning, never raised

Design Decisions:
    - secrets.token_urlsafe(32): unguessable, cookie-safe
    - The cookie is still handed out when the write failed; the next request simply
      resolves to no session
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import ValidationError

from soundround.core.errors import StoreError
from soundround.core.repository_protocols import KeyValueStore
from soundround.infrastructure.observability import log_context
from soundround.models.session import Session

logger = logging.getLogger(__name__)


def session_key(token: str) -> str:
    return f"session:{token}"


@dataclass(frozen=True)
class IssuedSession:
    session: Session
    warning: str | None = None

    @property
    def token(self) -> str:
        return self.session.token


class SessionAuthenticator:
    """resolve / issue / revoke for Session records."""

    def __init__(self, kv: KeyValueStore, ttl_seconds: int):
        self._kv = kv
        self._ttl = ttl_seconds

    async def resolve(self, token: str | None) -> Session | None:
        if not token:
            return None
        try:
            raw = await self._kv.get(session_key(token))
        except StoreError as e:
            logger.warning(f"Session lookup failed, treating as anonymous: {e.message}")
            return None
        if raw is None:
            return None
        try:
            return Session.from_blob(raw)
        except ValidationError:
            logger.warning("Discarding unreadable session record")
            return None

    async def issue(
        self, participant_id: str, round_code: str, now: datetime | None = None,
    ) -> IssuedSession:
        session = Session(
            token=secrets.token_urlsafe(32),
            participant_id=participant_id,
            round_code=round_code,
            created_at=now or datetime.now(timezone.utc),
        )
        try:
            await self._kv.set(session_key(session.token), session.to_blob(), self._ttl)
        except StoreError as e:
            logger.error(
                f"Failed to create session: {e.message}",
                extra=log_context(round_code=round_code, participant_id=participant_id),
            )
            return IssuedSession(session, warning="Session could not be saved")
        return IssuedSession(session)

    async def revoke(self, token: str) -> bool:
        try:
            await self._kv.delete(session_key(token))
        except StoreError as e:
            logger.error(f"Failed to revoke session: {e.message}")
            return False
        return True
