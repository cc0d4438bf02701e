"""Response Mapping — outcomes to JSON responses, download headers.

Invariants:
    - Accepted -> 200 with {"success": true, ...}; a session_token becomes the cookie
    - Rejected -> 400 for client validation reasons, 200 for state conflicts
"""

from urllib.parse import quote

from fastapi import status
from fastapi.responses import JSONResponse

from soundround.api.dependencies import set_session_cookie
from soundround.config import Settings
from soundround.core.outcomes import Accepted, Outcome


def outcome_response(outcome: Outcome, settings: Settings) -> JSONResponse:
    if isinstance(outcome, Accepted):
        response = JSONResponse(outcome.to_response())
        if outcome.session_token:
            set_session_cookie(response, outcome.session_token, settings)
        return response

    code = (
        status.HTTP_400_BAD_REQUEST
        if outcome.reason.is_validation else status.HTTP_200_OK
    )
    return JSONResponse(outcome.to_response(), status_code=code)


def attachment_header(filename: str) -> str:
    """Content-Disposition value; non-ASCII names use RFC 5987 encoding."""
    if filename.isascii() and '"' not in filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename*=utf-8''{quote(filename)}"
