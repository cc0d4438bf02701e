"""Round Schemas — request bodies with field-level validation.

Invariants:
    - Request JSON uses camelCase keys (hostName, displayName, allowGuestDownload)
    - Names are stripped and must be non-empty after stripping
    - mode/state accept only RoundMode/RoundState values (400 otherwise)
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from soundround.core.domain_types import RoundMode, RoundState


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


class RoundCreate(_Body):
    """Host creates a round."""
    name: str = Field(min_length=1, max_length=100)
    mode: RoundMode
    host_name: str = Field(min_length=1, max_length=64)
    allow_guest_download: bool = False

    @field_validator("name", "host_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        return _strip_required(v)


class RoundJoin(_Body):
    """Participant joins (or renames themselves in) a round."""
    code: str = Field(min_length=1, max_length=16)
    display_name: str = Field(min_length=1, max_length=64)

    @field_validator("code", "display_name")
    @classmethod
    def strip_fields(cls, v: str) -> str:
        return _strip_required(v)


class StateChange(_Body):
    state: RoundState
