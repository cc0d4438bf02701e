"""Failure Envelopes — every exception leaves the API as {"success": false, "error", "code"}.

Invariants:
    - SoundRoundError answers with its own http_status and code
    - Malformed bodies / params answer 400 VALIDATION_ERROR with per-field details
    - Anything else answers 500 INTERNAL_ERROR; the exception text stays in the log
    - Client faults (4xx) log at WARNING, server faults (5xx) at ERROR
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from soundround.core.errors import SoundRoundError
from soundround.infrastructure.observability import log_context

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SoundRoundError, round_error_response)
    app.add_exception_handler(RequestValidationError, invalid_request_response)
    app.add_exception_handler(Exception, unexpected_error_response)


async def round_error_response(request: Request, exc: SoundRoundError) -> JSONResponse:
    ctx = exc.context
    logger.log(
        logging.ERROR if exc.http_status >= 500 else logging.WARNING,
        f"{request.method} {request.url.path} -> {exc.http_status} {exc.code}: {exc.message}",
        extra=log_context(
            error_code=exc.code,
            path=request.url.path,
            round_code=ctx.round_code,
            participant_id=ctx.participant_id,
            stored_file=ctx.filename,
        ),
    )
    return JSONResponse(exc.to_response(), status_code=exc.http_status)


async def invalid_request_response(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Rejected malformed request to {request.url.path} ({len(details)} field errors)",
        extra=log_context(error_code="VALIDATION_ERROR", path=request.url.path),
    )
    return JSONResponse(
        {
            "success": False,
            "error": "Invalid request",
            "code": "VALIDATION_ERROR",
            "details": details,
        },
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
        extra=log_context(error_code="INTERNAL_ERROR", path=request.url.path),
    )
    return JSONResponse(
        {"success": False, "error": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
