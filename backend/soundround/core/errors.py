"""Error Hierarchy — typed, categorized exceptions for all SoundRound failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Authorization/not-found errors are 400-level; store and filesystem errors are 500-level
    - to_response() produces the {"success": false, "error", "code"} envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with SoundRoundError base: one FastAPI handler catches all
    - Expected user-facing outcomes (can't join, not active, bad file type) are NOT
      exceptions; they travel as core.outcomes.Rejected values
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORE = "store"
    FILESYSTEM = "filesystem"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    round_code: str | None = None
    participant_id: str | None = None
    filename: str | None = None
    debug_info: dict[str, Any] | None = None


class SoundRoundError(Exception):
    """Base exception for all SoundRound errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the standard failure envelope."""
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
        }


# ─── Authorization Errors (401/403) ─────────────────────────────

class NotAuthenticatedError(SoundRoundError):
    """No session cookie, or the session record is gone."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Unauthorized", "NOT_AUTHENTICATED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 401,
        )


class NotParticipantError(SoundRoundError):
    """Session does not belong to a participant of this round."""
    def __init__(
        self, message: str = "You are not a participant in this round",
        http_status: int = 401, context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "NOT_PARTICIPANT", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, http_status,
        )


class NotHostError(SoundRoundError):
    """Host-only action attempted by someone else."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Only the host can {action}", "NOT_HOST",
            ErrorCategory.AUTHORIZATION, ErrorSeverity.WARNING, context, 403,
        )
        self.action = action


# ─── Not Found (404) ────────────────────────────────────────────

class RoundNotFoundError(SoundRoundError):
    """No live round under this join code."""
    def __init__(self, code: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.round_code = code
        super().__init__(
            "Round not found", "ROUND_NOT_FOUND",
            ErrorCategory.RESOURCE_NOT_FOUND, ErrorSeverity.INFO, ctx, 404,
        )


class FileNotFoundInRoundError(SoundRoundError):
    """Requested file is unknown to the round or missing on disk."""
    def __init__(
        self, message: str = "File not found or not available for download",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "FILE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreError(SoundRoundError):
    """Key-value store operation or blob (de)serialization failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_ERROR", ErrorCategory.STORE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class FileStorageError(SoundRoundError):
    """Filesystem write/read failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"File {operation} failed: {message}",
            "FILE_STORAGE_ERROR", ErrorCategory.FILESYSTEM,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class FileRollbackError(SoundRoundError):
    """Round save failed AND the newly written file could not be removed."""
    def __init__(
        self, filename: str, cause: Exception, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.filename = filename
        super().__init__(
            "Failed to update round and to roll back the uploaded file",
            "FILE_ROLLBACK_FAILED", ErrorCategory.FILESYSTEM,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.cause = cause


class JoinCodeExhaustedError(SoundRoundError):
    """No free join code found within the configured attempts."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Could not allocate a join code after {attempts} attempts",
            "JOIN_CODE_EXHAUSTED", ErrorCategory.UNAVAILABLE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts
