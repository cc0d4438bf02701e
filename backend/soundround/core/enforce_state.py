"""Round State Machine — validates host-requested state transitions, pure.

Invariants:
    - Only the round's host may request a transition (NotHostError otherwise)
    - FORWARD_ONLY: target must be strictly later than the current state
      (waiting -> active, waiting -> closed, active -> closed)
    - HOST_ONLY: authorization is the only rule; any of the three states is accepted
    - A transition changes round.state and nothing else

Design Decisions:
    - Policy is a setting (Settings.state_transition_policy), default FORWARD_ONLY
"""

from soundround.core.domain_types import STATE_ORDER, RoundState, TransitionPolicy
from soundround.core.errors import ErrorContext, NotHostError
from soundround.core.outcomes import Reason, Rejected
from soundround.models.round import Round


def check_transition(
    round_: Round,
    actor_id: str | None,
    target: RoundState,
    policy: TransitionPolicy = TransitionPolicy.FORWARD_ONLY,
) -> Rejected | None:
    """Return None when the transition may be applied. Raises NotHostError for non-hosts."""
    if not round_.is_host(actor_id):
        raise NotHostError(
            "change the round state",
            ErrorContext(round_code=round_.join_code, participant_id=actor_id),
        )

    if policy == TransitionPolicy.HOST_ONLY:
        return None

    if STATE_ORDER[target] <= STATE_ORDER[round_.state]:
        return Rejected(
            Reason.INVALID_TRANSITION,
            f"Cannot move round from {round_.state.value} to {target.value}",
        )
    return None


def apply_transition(round_: Round, target: RoundState) -> tuple[Round, RoundState]:
    """Return (updated copy, previous state)."""
    updated = round_.copy_for_update()
    previous = updated.state
    updated.state = target
    return updated, previous
