"""Outcomes — closed set of result values returned by round operations.

Invariants:
    - Every operation returns Accepted or Rejected; faults are exceptions (core/errors.py)
    - Accepted.warnings carries non-fatal side-effect failures (old file delete, session persist)
    - to_response() is the only place an outcome becomes a JSON dict

Design Decisions:
    - Rejections are values, not exceptions: "round is closed" is an expected answer
    - Reason.is_validation marks client input problems that map to HTTP 400
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Reason(str, Enum):
    """Why an operation was declined."""
    # state conflicts (HTTP 200, success=false)
    ROUND_NOT_JOINABLE = "ROUND_NOT_JOINABLE"
    ROUND_NOT_ACTIVE = "ROUND_NOT_ACTIVE"
    SAMPLE_MISSING = "SAMPLE_MISSING"
    SAMPLE_LOCKED = "SAMPLE_LOCKED"
    WRONG_MODE = "WRONG_MODE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    # client validation (HTTP 400)
    MISSING_FILE = "MISSING_FILE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"

    @property
    def is_validation(self) -> bool:
        return self in _VALIDATION_REASONS


_VALIDATION_REASONS = frozenset({
    Reason.MISSING_FILE, Reason.INVALID_FILE_TYPE, Reason.FILE_TOO_LARGE,
})


@dataclass(frozen=True)
class Rejected:
    """Operation declined; nothing was stored or written."""
    reason: Reason
    message: str

    @property
    def success(self) -> bool:
        return False

    def to_response(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "code": self.reason.value,
        }


@dataclass
class Accepted:
    """Operation applied. payload is merged into the response body.

    session_token is a credential for the response cookie; it never enters the body.
    """
    payload: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    session_token: str | None = None

    @property
    def success(self) -> bool:
        return True

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def to_response(self) -> dict:
        body: dict[str, Any] = {"success": True, **self.payload}
        if self.warnings:
            body["warnings"] = list(self.warnings)
        return body


Outcome = Accepted | Rejected
