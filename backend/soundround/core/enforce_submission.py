"""Submission Router — per-mode acceptance and routing of one upload, pure.

Invariants:
    - Preconditions run in order: participant -> round active -> (sample mode) sample exists
    - Telephone order is the ascending sort of participant id strings, never join order
    - Uploader at position i is assigned to position i+1; the last one has no target
    - Position 0's upload becomes round.sample_file_id (the chain seed); nobody else's does
    - A replacement keeps the previously stored assigned_to_id
    - Sample mode records the upload under the uploader's id with no assignment

Design Decisions:
    - route_submission computes a decision; apply_routing writes it into a copy.
      The shell saves the copy, then deletes decision.previous_filename
"""

from dataclasses import dataclass
from datetime import datetime

from soundround.core.domain_types import RoundMode, RoundState
from soundround.core.errors import ErrorContext, NotParticipantError
from soundround.core.filenames import audio_extension
from soundround.core.outcomes import Reason, Rejected
from soundround.models.round import Round, Submission


@dataclass(frozen=True)
class RoutingDecision:
    submission: Submission
    is_replacement: bool
    previous_filename: str | None
    seeds_chain: bool


def check_upload_preconditions(round_: Round, participant_id: str) -> Rejected | None:
    """Raises NotParticipantError (401) for outsiders; Rejected for state conflicts."""
    if not round_.is_participant(participant_id):
        raise NotParticipantError(
            context=ErrorContext(
                round_code=round_.join_code, participant_id=participant_id,
            ),
        )
    if round_.state != RoundState.ACTIVE:
        return Rejected(
            Reason.ROUND_NOT_ACTIVE,
            "Uploads are only allowed when the round is active",
        )
    if round_.mode == RoundMode.SAMPLE and not round_.sample_file_id:
        return Rejected(
            Reason.SAMPLE_MISSING,
            "Waiting for host to upload sample file first",
        )
    return None


def validate_audio_upload(
    original_name: str | None, size: int | None, max_bytes: int,
) -> str | Rejected:
    """Return the validated extension, or why the file is refused."""
    if not original_name:
        return Rejected(Reason.MISSING_FILE, "No file provided")
    extension = audio_extension(original_name)
    if extension is None:
        return Rejected(
            Reason.INVALID_FILE_TYPE,
            "Invalid file type. Please upload an audio file "
            "(mp3, wav, m4a, flac, ogg, aac)",
        )
    if size is not None and size > max_bytes:
        return too_large(max_bytes)
    return extension


def too_large(max_bytes: int) -> Rejected:
    return Rejected(
        Reason.FILE_TOO_LARGE,
        f"File too large (max {max_bytes // (1024 * 1024)}MB)",
    )


# ─── Telephone chain ─────────────────────────────────────────────

def telephone_order(round_: Round) -> list[str]:
    return sorted(round_.participants)


def telephone_successor(order: list[str], participant_id: str) -> str | None:
    if participant_id not in order:
        return None
    position = order.index(participant_id)
    if position + 1 < len(order):
        return order[position + 1]
    return None


def route_submission(
    round_: Round,
    participant_id: str,
    filename: str,
    original_name: str,
    now: datetime,
) -> RoutingDecision:
    previous = round_.submissions.get(participant_id)
    submission = Submission(
        participant_id=participant_id,
        filename=filename,
        original_name=original_name,
        uploaded_at=now,
    )
    seeds_chain = False

    if round_.mode == RoundMode.TELEPHONE:
        order = telephone_order(round_)
        if previous is not None and previous.assigned_to_id:
            submission.assigned_to_id = previous.assigned_to_id
        else:
            submission.assigned_to_id = telephone_successor(order, participant_id)
        seeds_chain = bool(order) and order[0] == participant_id

    return RoutingDecision(
        submission=submission,
        is_replacement=previous is not None,
        previous_filename=previous.filename if previous else None,
        seeds_chain=seeds_chain,
    )


def apply_routing(round_: Round, decision: RoutingDecision) -> Round:
    updated = round_.copy_for_update()
    submission = decision.submission
    updated.submissions[submission.participant_id] = submission
    if decision.seeds_chain:
        updated.sample_file_id = submission.filename
    return updated


def upload_message(round_: Round, decision: RoutingDecision) -> str:
    """Human-readable confirmation for the uploader."""
    replaced = decision.is_replacement
    if round_.mode == RoundMode.SAMPLE:
        verb = "updated" if replaced else "uploaded"
        return f"Your remix has been {verb} successfully!"

    target = round_.display_name_of(decision.submission.assigned_to_id)
    upload = "Your updated upload" if replaced else "Your upload"
    if target:
        return f"{upload} will be passed to {target}"
    return f"{upload} is the last in the telephone chain!"


# ─── Host sample ─────────────────────────────────────────────────

def check_sample_preconditions(round_: Round) -> Rejected | None:
    """Host check is done by the caller; this covers mode and state."""
    if round_.mode != RoundMode.SAMPLE:
        return Rejected(
            Reason.WRONG_MODE, "Sample uploads are only for sample mode rounds",
        )
    if round_.state != RoundState.WAITING:
        return Rejected(
            Reason.SAMPLE_LOCKED,
            "Sample can only be uploaded or changed before the round starts. "
            f"Current state: {round_.state.value}",
        )
    return None
