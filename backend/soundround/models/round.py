"""Round Record — the aggregate stored as one blob under round:<joinCode>.

Invariants:
    - Round owns its participants and submissions (plain value collections, keyed by participant id)
    - At most one Submission per participant id (dict key)
    - Exactly one Participant has is_host=True and its id equals host_id
    - Mutations happen on a deep copy (Round.copy_for_update) that is committed only by a store save

Design Decisions:
    - Participant/Submission have no existence outside their Round: no separate keys
    - version counts successful saves; informational, not used for locking
"""

from datetime import datetime

from pydantic import Field

from soundround.core.domain_types import RoundMode, RoundState
from soundround.models.base import Record


class Participant(Record):
    id: str
    display_name: str
    is_host: bool = False
    joined_at: datetime


class Submission(Record):
    participant_id: str
    filename: str
    original_name: str
    uploaded_at: datetime
    assigned_to_id: str | None = None


class Round(Record):
    """One hosted session of audio exchange."""

    id: str
    join_code: str
    name: str
    mode: RoundMode
    state: RoundState = RoundState.WAITING
    host_id: str
    participants: dict[str, Participant] = Field(default_factory=dict)
    submissions: dict[str, Submission] = Field(default_factory=dict)
    allow_guest_download: bool = False
    created_at: datetime
    sample_file_id: str | None = None
    version: int = 0

    def copy_for_update(self) -> "Round":
        """Detached deep copy; changes reach the store only through save()."""
        return self.model_copy(deep=True)

    def is_participant(self, participant_id: str | None) -> bool:
        return participant_id is not None and participant_id in self.participants

    def is_host(self, participant_id: str | None) -> bool:
        return participant_id is not None and participant_id == self.host_id

    def display_name_of(self, participant_id: str | None) -> str | None:
        participant = self.participants.get(participant_id) if participant_id else None
        return participant.display_name if participant else None
