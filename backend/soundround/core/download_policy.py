"""Download Policy — who may fetch which file of a round, pure.

Invariants:
    - Participants may always download; others only when allow_guest_download is set
    - No session and no guest access -> NotAuthenticatedError (401)
    - Session that is not a participant and no guest access -> NotParticipantError (403)
    - "sample" resolves to the round's sample; "assigned" to the file handed to the caller
      in the telephone chain; any other name must match a stored filename of the round
"""

from dataclasses import dataclass
from pathlib import PurePosixPath

from soundround.core.domain_types import DOWNLOAD_ASSIGNED, DOWNLOAD_SAMPLE
from soundround.core.enforce_submission import telephone_order
from soundround.core.errors import (
    ErrorContext, NotAuthenticatedError, NotParticipantError,
)
from soundround.models.round import Round


@dataclass(frozen=True)
class DownloadTarget:
    filename: str
    download_name: str


def check_download_access(round_: Round, requester_id: str | None) -> None:
    if round_.is_participant(requester_id) or round_.allow_guest_download:
        return
    context = ErrorContext(round_code=round_.join_code, participant_id=requester_id)
    if requester_id is None:
        raise NotAuthenticatedError(context)
    raise NotParticipantError(
        "You must be a participant to download files", 403, context,
    )


def _sample_target(round_: Round, stem: str) -> DownloadTarget | None:
    if not round_.sample_file_id:
        return None
    suffix = PurePosixPath(round_.sample_file_id).suffix
    return DownloadTarget(round_.sample_file_id, f"{stem}{suffix}")


def _assigned_target(round_: Round, requester_id: str | None) -> DownloadTarget | None:
    if requester_id is None:
        return None
    for submission in round_.submissions.values():
        if submission.assigned_to_id == requester_id:
            return DownloadTarget(submission.filename, submission.original_name)
    # Second in line receives the seed even before the first upload is routed
    order = telephone_order(round_)
    if len(order) > 1 and order[1] == requester_id:
        return _sample_target(round_, "starting_file")
    return None


def resolve_download(
    round_: Round, requester_id: str | None, requested: str,
) -> DownloadTarget | None:
    if requested == DOWNLOAD_SAMPLE:
        return _sample_target(round_, "sample")
    if requested == DOWNLOAD_ASSIGNED:
        return _assigned_target(round_, requester_id)

    for submission in round_.submissions.values():
        if submission.filename == requested:
            return DownloadTarget(submission.filename, submission.original_name)
    if round_.sample_file_id and requested == round_.sample_file_id:
        return _sample_target(round_, "sample")
    return None
