"""File Routes — uploads, host sample upload, downloads and the host export.

Invariants:
    - Participant uploads use multipart field `audio`, host samples field `sample`
    - File endpoints return raw bytes with attachment headers on success,
      the JSON failure envelope otherwise
    - Archive assembly runs in a worker thread and is held in memory
"""

import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from soundround.api.dependencies import (
    BundlerDep, CurrentSession, RoundCode, SettingsDep, SubmissionsDep,
)
from soundround.api.responses import attachment_header, outcome_response
from soundround.core.filenames import content_type_for

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/round", tags=["files"])


@router.post("/{code}/upload")
async def upload_submission(
    code: RoundCode,
    session: CurrentSession,
    submissions: SubmissionsDep,
    settings: SettingsDep,
    audio: UploadFile | None = File(None),
) -> JSONResponse:
    try:
        outcome = await submissions.upload(code, session, audio)
    finally:
        if audio is not None:
            await audio.close()
    return outcome_response(outcome, settings)


@router.post("/{code}/upload-sample")
async def upload_sample(
    code: RoundCode,
    session: CurrentSession,
    submissions: SubmissionsDep,
    settings: SettingsDep,
    sample: UploadFile | None = File(None),
) -> JSONResponse:
    try:
        outcome = await submissions.upload_sample(code, session, sample)
    finally:
        if sample is not None:
            await sample.close()
    return outcome_response(outcome, settings)


@router.get("/{code}/download/{filename}")
async def download_file(
    code: RoundCode, filename: str, session: CurrentSession, bundler: BundlerDep,
) -> FileResponse:
    located = await bundler.locate_download(code, session, filename)
    return FileResponse(
        located.path,
        media_type=content_type_for(located.target.filename),
        headers={
            "Content-Disposition": attachment_header(located.target.download_name),
        },
    )


@router.get("/{code}/export")
async def export_round(
    code: RoundCode, session: CurrentSession, bundler: BundlerDep,
) -> Response:
    """Host-only zip of the sample and every submission."""
    round_ = await bundler.load_for_export(code, session)
    bundle = await run_in_threadpool(bundler.build_archive, round_)
    headers = {"Content-Disposition": attachment_header(bundle.filename)}
    if bundle.skipped:
        headers["X-Export-Skipped"] = str(len(bundle.skipped))
    return Response(content=bundle.data, media_type="application/zip", headers=headers)
