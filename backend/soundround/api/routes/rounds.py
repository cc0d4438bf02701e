"""Round Routes — create, join, info, state transitions and leave.

Invariants:
    - create/join always set a fresh session cookie on success
    - Structured rejections answer 200 with success=false; faults go through error handlers
    - Path join codes are normalized (strip + uppercase) before lookup
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from soundround.api.dependencies import (
    CurrentSession,
    LifecycleDep,
    RoundCode,
    SettingsDep,
    clear_session_cookie,
)
from soundround.api.responses import outcome_response
from soundround.schemas.round import RoundCreate, RoundJoin, StateChange

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/round", tags=["rounds"])


@router.post("/create")
async def create_round(
    body: RoundCreate, lifecycle: LifecycleDep, settings: SettingsDep,
) -> JSONResponse:
    """Create a round; the caller becomes its host."""
    outcome = await lifecycle.create_round(
        body.name, body.mode, body.host_name, body.allow_guest_download,
    )
    return outcome_response(outcome, settings)


@router.post("/join")
async def join_round(
    body: RoundJoin,
    session: CurrentSession,
    lifecycle: LifecycleDep,
    settings: SettingsDep,
) -> JSONResponse:
    outcome = await lifecycle.join_round(body.code, body.display_name, session)
    return outcome_response(outcome, settings)


@router.get("/{code}/info")
async def round_info(
    code: RoundCode, session: CurrentSession, lifecycle: LifecycleDep,
    settings: SettingsDep,
) -> JSONResponse:
    """Polled by clients for participants, submissions and state."""
    return outcome_response(await lifecycle.round_info(code, session), settings)


@router.post("/{code}/state")
async def update_state(
    code: RoundCode,
    body: StateChange,
    session: CurrentSession,
    lifecycle: LifecycleDep,
    settings: SettingsDep,
) -> JSONResponse:
    outcome = await lifecycle.update_state(code, session, body.state)
    return outcome_response(outcome, settings)


@router.post("/{code}/leave")
async def leave_round(
    code: RoundCode,
    session: CurrentSession,
    lifecycle: LifecycleDep,
    settings: SettingsDep,
) -> JSONResponse:
    outcome = await lifecycle.leave_round(code, session)
    response = outcome_response(outcome, settings)
    clear_session_cookie(response, settings)
    return response
