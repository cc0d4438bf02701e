"""Domain Types — enums, identity types and fixed limits shared across the codebase.

Invariants:
    - RoundState order is waiting < active < closed (STATE_ORDER is the single source)
    - ALLOWED_AUDIO_EXTENSIONS are lowercase and include the leading dot
    - All valid modes/states encoded as str Enums — no raw string matching

Design Decisions:
    - NewType over wrappers: ids stay plain strings inside the JSON blob
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ParticipantId = NewType("ParticipantId", str)
JoinCode = NewType("JoinCode", str)
SessionToken = NewType("SessionToken", str)


# ─── Enums ───────────────────────────────────────────────────────

class RoundMode(str, Enum):
    """Exchange policy for a round."""
    SAMPLE = "sample"
    TELEPHONE = "telephone"


class RoundState(str, Enum):
    """Round lifecycle states."""
    WAITING = "waiting"
    ACTIVE = "active"
    CLOSED = "closed"


STATE_ORDER: dict[RoundState, int] = {
    RoundState.WAITING: 0,
    RoundState.ACTIVE: 1,
    RoundState.CLOSED: 2,
}


class TransitionPolicy(str, Enum):
    """Which state transitions the host may request."""
    FORWARD_ONLY = "forward_only"
    HOST_ONLY = "host_only"


# ─── Limits ──────────────────────────────────────────────────────

JOIN_CODE_LENGTH: int = 6
JOIN_CODE_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

MAX_UPLOAD_BYTES: int = 32 * 1024 * 1024
SAMPLE_MARKER: str = "SAMPLE"

AUDIO_CONTENT_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".aac": "audio/aac",
}
ALLOWED_AUDIO_EXTENSIONS: frozenset[str] = frozenset(AUDIO_CONTENT_TYPES)

# Reserved names on the download endpoint
DOWNLOAD_SAMPLE: str = "sample"
DOWNLOAD_ASSIGNED: str = "assigned"
