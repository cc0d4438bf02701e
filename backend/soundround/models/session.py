"""Session Record — binds an opaque bearer token to one participant in one round.

Invariants:
    - One token identifies exactly one participant in exactly one round
    - The only link to the round is round_code, resolved at read time
"""

from datetime import datetime

from soundround.models.base import Record


class Session(Record):
    token: str
    participant_id: str
    round_code: str
    created_at: datetime
