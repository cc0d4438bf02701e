"""Participant Registry Rules — round creation and joining, pure.

Invariants:
    - new_round seeds participants with exactly the host (is_host=True, id == host_id)
    - Joining is accepted only while the round is waiting
    - A caller whose session already belongs to this round keeps their participant id
      (display name updated in place); anyone else gets a freshly minted id
    - Functions never mutate their input round; they return an updated copy
"""

from dataclasses import dataclass
from datetime import datetime

from soundround.core.domain_types import RoundMode, RoundState
from soundround.core.outcomes import Reason, Rejected
from soundround.models.round import Participant, Round
from soundround.models.session import Session


@dataclass(frozen=True)
class JoinResult:
    round: Round
    participant_id: str
    rejoined: bool


def new_round(
    *,
    round_id: str,
    join_code: str,
    name: str,
    mode: RoundMode,
    host_id: str,
    host_name: str,
    allow_guest_download: bool,
    now: datetime,
) -> Round:
    host = Participant(
        id=host_id, display_name=host_name, is_host=True, joined_at=now,
    )
    return Round(
        id=round_id,
        join_code=join_code,
        name=name,
        mode=mode,
        state=RoundState.WAITING,
        host_id=host_id,
        participants={host_id: host},
        submissions={},
        allow_guest_download=allow_guest_download,
        created_at=now,
    )


def apply_join(
    round_: Round,
    display_name: str,
    existing_session: Session | None,
    new_participant_id: str,
    now: datetime,
) -> JoinResult | Rejected:
    """Add or rename a participant. Returns Rejected when the round is not waiting."""
    if round_.state != RoundState.WAITING:
        return Rejected(
            Reason.ROUND_NOT_JOINABLE,
            "This round is no longer accepting participants",
        )

    updated = round_.copy_for_update()
    if (
        existing_session is not None
        and existing_session.round_code == round_.join_code
        and existing_session.participant_id in updated.participants
    ):
        participant = updated.participants[existing_session.participant_id]
        participant.display_name = display_name
        return JoinResult(updated, participant.id, rejoined=True)

    updated.participants[new_participant_id] = Participant(
        id=new_participant_id,
        display_name=display_name,
        is_host=False,
        joined_at=now,
    )
    return JoinResult(updated, new_participant_id, rejoined=False)
