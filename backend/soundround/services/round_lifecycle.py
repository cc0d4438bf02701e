"""Round Lifecycle — create, join, inspect, transition and leave rounds.

Invariants:
    - create_round never assigns a join code for which exists() was true
    - Join code check and first save happen under that code's lock
    - Every create/join issues a brand-new session token
    - Session persistence and upload-directory failures are warnings, not errors
    - State transitions are host-only and follow Settings.state_transition_policy

Design Decisions:
    - Join code allocation is bounded by join_code_max_attempts (JoinCodeExhaustedError)
      instead of looping forever when the code space is crowded
"""

import logging
import uuid
from datetime import datetime, timezone

from soundround.config import Settings
from soundround.core.domain_types import RoundMode, RoundState
from soundround.core.enforce_join import apply_join, new_round
from soundround.core.enforce_state import apply_transition, check_transition
from soundround.core.errors import (
    FileStorageError, JoinCodeExhaustedError, NotAuthenticatedError,
)
from soundround.core.join_codes import generate_join_code, normalize_join_code
from soundround.core.outcomes import Accepted, Outcome, Rejected
from soundround.infrastructure.file_storage import UploadStorage
from soundround.infrastructure.observability import log_context
from soundround.models.round import Round
from soundround.models.session import Session
from soundround.services.round_store import RoundStore
from soundround.services.session_auth import SessionAuthenticator

logger = logging.getLogger(__name__)


class RoundLifecycle:
    """Participant registry and state machine orchestration."""

    def __init__(
        self,
        rounds: RoundStore,
        sessions: SessionAuthenticator,
        files: UploadStorage,
        settings: Settings,
    ):
        self.rounds = rounds
        self.sessions = sessions
        self.files = files
        self.settings = settings

    async def create_round(
        self,
        name: str,
        mode: RoundMode,
        host_name: str,
        allow_guest_download: bool = False,
    ) -> Accepted:
        now = datetime.now(timezone.utc)
        host_id = str(uuid.uuid4())
        round_ = await self._store_with_fresh_code(
            lambda code: new_round(
                round_id=str(uuid.uuid4()),
                join_code=code,
                name=name,
                mode=mode,
                host_id=host_id,
                host_name=host_name,
                allow_guest_download=allow_guest_download,
                now=now,
            ),
        )
        logger.info(
            f"Created {mode.value} round '{name}'",
            extra=log_context(round_code=round_.join_code, participant_id=host_id),
        )

        outcome = Accepted(payload={
            "code": round_.join_code,
            "roundId": round_.id,
            "participantId": host_id,
            "hostName": host_name,
            "isHost": True,
        })
        try:
            self.files.ensure_round_dir(round_.id)
        except FileStorageError as e:
            outcome.warn(e.message)
        await self._grant_session(outcome, host_id, round_.join_code)
        return outcome

    async def _store_with_fresh_code(self, build) -> Round:
        for attempt in range(1, self.settings.join_code_max_attempts + 1):
            code = generate_join_code()
            async with self.rounds.lock(code):
                if await self.rounds.exists(code):
                    logger.warning(
                        f"Join code collision on attempt {attempt}, regenerating",
                        extra=log_context(round_code=code),
                    )
                    continue
                return await self.rounds.save(build(code))
        raise JoinCodeExhaustedError(self.settings.join_code_max_attempts)

    async def join_round(
        self, code: str, display_name: str, existing: Session | None,
    ) -> Outcome:
        code = normalize_join_code(code)
        async with self.rounds.lock(code):
            round_ = await self.rounds.load(code)
            result = apply_join(
                round_, display_name, existing,
                new_participant_id=str(uuid.uuid4()),
                now=datetime.now(timezone.utc),
            )
            if isinstance(result, Rejected):
                return result
            saved = await self.rounds.save(result.round)

        participant_id = result.participant_id
        logger.info(
            f"{'Renamed' if result.rejoined else 'Joined'} participant '{display_name}'",
            extra=log_context(round_code=code, participant_id=participant_id),
        )
        outcome = Accepted(payload={
            "code": code,
            "roundId": saved.id,
            "participantId": participant_id,
            "displayName": display_name,
            "isHost": saved.is_host(participant_id),
        })
        await self._grant_session(outcome, participant_id, code)
        return outcome

    async def _grant_session(
        self, outcome: Accepted, participant_id: str, code: str,
    ) -> None:
        issued = await self.sessions.issue(participant_id, code)
        outcome.session_token = issued.token
        if issued.warning:
            outcome.warn(issued.warning)

    async def update_state(
        self, code: str, session: Session | None, target: RoundState,
    ) -> Outcome:
        if session is None:
            raise NotAuthenticatedError()
        async with self.rounds.lock(code):
            round_ = await self.rounds.load(code)
            rejection = check_transition(
                round_, session.participant_id, target,
                self.settings.state_transition_policy,
            )
            if rejection is not None:
                return rejection
            updated, previous = apply_transition(round_, target)
            await self.rounds.save(updated)

        logger.info(
            f"Round state changed from {previous.value} to {target.value} "
            f"by host {session.participant_id}",
            extra=log_context(
                round_code=code, participant_id=session.participant_id,
                old_state=previous.value, new_state=target.value,
            ),
        )
        return Accepted(payload={
            "oldState": previous.value,
            "newState": target.value,
            "message": f"Round state updated to {target.value}",
        })

    async def round_info(self, code: str, session: Session | None) -> Accepted:
        round_ = await self.rounds.load(code)
        viewer_id = (
            session.participant_id
            if session is not None and session.round_code == code else None
        )
        return Accepted(payload={
            "round": round_.to_public(),
            "viewer": {
                "participantId": viewer_id,
                "isParticipant": round_.is_participant(viewer_id),
                "isHost": round_.is_host(viewer_id),
            },
        })

    async def leave_round(self, code: str, session: Session | None) -> Accepted:
        """End the caller's session. The participant record stays with the round."""
        if session is None or session.round_code != code:
            raise NotAuthenticatedError()
        outcome = Accepted(payload={"message": "You have left the round"})
        if not await self.sessions.revoke(session.token):
            outcome.warn("Session could not be removed")
        logger.info(
            "Participant left round",
            extra=log_context(round_code=code, participant_id=session.participant_id),
        )
        return outcome
