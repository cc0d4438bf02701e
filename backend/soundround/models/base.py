"""Record Base — shared pydantic config for every stored record.

Invariants:
    - Stored JSON uses camelCase keys (joinCode, hostId, ...); Python uses snake_case
    - Records round-trip losslessly through to_blob()/from_blob()
"""

from typing import Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base class for all stored SoundRound records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_blob(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_blob(cls, raw: str | bytes) -> Self:
        return cls.model_validate_json(raw)
