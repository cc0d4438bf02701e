"""Submission Service — participant uploads and host sample uploads.

Invariants:
    - Order: write new file -> save round -> delete superseded file
    - Validation and state rejections return before any file is written
    - Store save failure removes the new file and re-raises the StoreError;
      if that removal fails too, FileRollbackError is raised instead
    - Superseded-file deletion failure is a warning on the Accepted outcome
    - The whole sequence runs under the round's lock
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from soundround.config import Settings
from soundround.core.enforce_submission import (
    apply_routing,
    check_sample_preconditions,
    check_upload_preconditions,
    route_submission,
    too_large,
    upload_message,
    validate_audio_upload,
)
from soundround.core.errors import (
    ErrorContext,
    FileNotFoundInRoundError,
    FileRollbackError,
    FileStorageError,
    NotAuthenticatedError,
    NotHostError,
    StoreError,
)
from soundround.core.filenames import (
    build_sample_filename, build_stored_filename, clean_original_name,
)
from soundround.core.outcomes import Accepted, Outcome, Rejected
from soundround.infrastructure.file_storage import UploadStorage, UploadTooLarge
from soundround.infrastructure.observability import log_context
from soundround.models.round import Round
from soundround.models.session import Session
from soundround.services.round_store import RoundStore

logger = logging.getLogger(__name__)


class IncomingFile(Protocol):
    """What the service needs from an uploaded file (starlette UploadFile fits)."""
    filename: str | None
    size: int | None

    async def read(self, size: int = -1) -> bytes: ...


class SubmissionService:
    def __init__(self, rounds: RoundStore, files: UploadStorage, settings: Settings):
        self.rounds = rounds
        self.files = files
        self.settings = settings

    async def upload(
        self, code: str, session: Session | None, incoming: IncomingFile | None,
    ) -> Outcome:
        if session is None:
            raise NotAuthenticatedError(ErrorContext(round_code=code))
        participant_id = session.participant_id

        async with self.rounds.lock(code):
            round_ = await self.rounds.load(code)
            rejection = check_upload_preconditions(round_, participant_id)
            if rejection is not None:
                return rejection

            checked = self._check_file(incoming)
            if isinstance(checked, Rejected):
                return checked

            now = datetime.now(timezone.utc)
            filename = build_stored_filename(participant_id, checked, now)
            written = await self._write(round_, filename, incoming)
            if isinstance(written, Rejected):
                return written

            original_name = clean_original_name(incoming.filename)
            decision = route_submission(
                round_, participant_id, filename, original_name, now,
            )
            saved = await self._commit(apply_routing(round_, decision), filename)

        uploader = saved.display_name_of(participant_id)
        logger.info(
            f"File {'replaced' if decision.is_replacement else 'uploaded'}: "
            f"{filename} by {uploader}",
            extra=log_context(
                round_code=code, participant_id=participant_id,
                stored_file=filename, size=written,
            ),
        )
        payload = {
            "filename": filename,
            "originalName": original_name,
            "size": written,
            "uploadedBy": uploader,
            "isReplacement": decision.is_replacement,
            "message": upload_message(saved, decision),
        }
        assigned_to = decision.submission.assigned_to_id
        if assigned_to:
            payload["assignedToId"] = assigned_to
            payload["assignedTo"] = saved.display_name_of(assigned_to)
        outcome = Accepted(payload=payload)

        if decision.previous_filename:
            self._discard_superseded(saved, decision.previous_filename, outcome)
        return outcome

    async def upload_sample(
        self, code: str, session: Session | None, incoming: IncomingFile | None,
    ) -> Outcome:
        if session is None:
            raise NotAuthenticatedError(ErrorContext(round_code=code))

        async with self.rounds.lock(code):
            round_ = await self.rounds.load(code)
            if not round_.is_host(session.participant_id):
                raise NotHostError(
                    "upload the sample file",
                    ErrorContext(round_code=code, participant_id=session.participant_id),
                )
            rejection = check_sample_preconditions(round_)
            if rejection is not None:
                return rejection

            checked = self._check_file(incoming)
            if isinstance(checked, Rejected):
                return checked

            filename = build_sample_filename(checked, datetime.now(timezone.utc))
            written = await self._write(round_, filename, incoming)
            if isinstance(written, Rejected):
                return written

            previous = round_.sample_file_id
            updated = round_.copy_for_update()
            updated.sample_file_id = filename
            saved = await self._commit(updated, filename)

        original_name = clean_original_name(incoming.filename)
        logger.info(
            f"Sample file {'replaced' if previous else 'uploaded'}: {filename} "
            f"(original: {original_name})",
            extra=log_context(round_code=code, stored_file=filename, size=written),
        )
        outcome = Accepted(payload={
            "filename": filename,
            "originalName": original_name,
            "size": written,
            "isReplacement": previous is not None,
            "message": (
                "Sample replaced successfully! The new sample will be used "
                "when the round starts."
                if previous else
                "Sample uploaded successfully! Participants can download and "
                "create remixes once the round starts."
            ),
        })
        if previous:
            self._discard_superseded(saved, previous, outcome)
        return outcome

    # ─── helpers ──────────────────────────────────────────────────

    def _check_file(self, incoming: IncomingFile | None) -> str | Rejected:
        return validate_audio_upload(
            incoming.filename if incoming is not None else None,
            incoming.size if incoming is not None else None,
            self.settings.max_upload_bytes,
        )

    async def _write(
        self, round_: Round, filename: str, incoming: IncomingFile,
    ) -> int | Rejected:
        try:
            return await self.files.write_stream(
                round_.id, filename, incoming, self.settings.max_upload_bytes,
            )
        except UploadTooLarge as e:
            return too_large(e.limit)

    async def _commit(self, updated: Round, filename: str) -> Round:
        """Save the round; on failure remove the file this request wrote."""
        try:
            return await self.rounds.save(updated)
        except StoreError as save_error:
            try:
                self.files.delete(updated.id, filename)
            except FileNotFoundInRoundError:
                pass
            except FileStorageError as rollback_error:
                logger.critical(
                    f"Rollback of {filename} failed after store error: {rollback_error.message}",
                    extra=log_context(round_code=updated.join_code, stored_file=filename),
                )
                raise FileRollbackError(filename, rollback_error) from save_error
            logger.error(
                f"Round save failed, removed new file {filename}",
                extra=log_context(round_code=updated.join_code, stored_file=filename),
            )
            raise

    def _discard_superseded(
        self, round_: Round, filename: str, outcome: Accepted,
    ) -> None:
        try:
            self.files.delete(round_.id, filename)
        except (FileNotFoundInRoundError, FileStorageError) as e:
            logger.warning(
                f"Could not delete old file {filename}: {e.message}",
                extra=log_context(round_code=round_.join_code, stored_file=filename),
            )
            outcome.warn(f"Could not delete superseded file {filename}")
            return
        logger.info(
            f"Deleted old file: {filename}",
            extra=log_context(round_code=round_.join_code, stored_file=filename),
        )
