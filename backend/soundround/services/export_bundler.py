"""Export Bundler — host-only downloads of single files and the whole round as a zip.

Invariants:
    - Export is host-only regardless of allow_guest_download
    - Archive entries follow core.export_plan order exactly
    - Unreadable entries are skipped and logged; they never abort the archive
    - build_archive() is synchronous; routes run it in a worker thread
"""

import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from soundround.core.download_policy import (
    DownloadTarget, check_download_access, resolve_download,
)
from soundround.core.errors import (
    ErrorContext, FileNotFoundInRoundError, NotAuthenticatedError, NotHostError,
)
from soundround.core.export_plan import export_filename, plan_export
from soundround.infrastructure.file_storage import UploadStorage
from soundround.infrastructure.observability import log_context
from soundround.models.round import Round
from soundround.models.session import Session
from soundround.services.round_store import RoundStore

logger = logging.getLogger(__name__)


@dataclass
class ExportBundle:
    filename: str
    data: bytes
    included: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class LocatedFile:
    path: Path
    target: DownloadTarget


class ExportBundler:
    """Read-side access to a round's files. Takes no round lock."""

    def __init__(self, rounds: RoundStore, files: UploadStorage):
        self.rounds = rounds
        self.files = files

    async def locate_download(
        self, code: str, session: Session | None, requested: str,
    ) -> LocatedFile:
        round_ = await self.rounds.load(code)
        requester_id = session.participant_id if session is not None else None
        check_download_access(round_, requester_id)

        target = resolve_download(round_, requester_id, requested)
        if target is None:
            raise FileNotFoundInRoundError(
                context=ErrorContext(round_code=code, filename=requested),
            )
        path = self.files.path_for(round_.id, target.filename)
        if not path.is_file():
            logger.error(
                f"Round references missing file {target.filename}",
                extra=log_context(round_code=code, stored_file=target.filename),
            )
            raise FileNotFoundInRoundError(
                "File not found on server",
                ErrorContext(round_code=code, filename=target.filename),
            )
        logger.info(
            f"File downloaded: {target.filename}",
            extra=log_context(
                round_code=code, participant_id=requester_id,
                stored_file=target.filename,
            ),
        )
        return LocatedFile(path, target)

    async def load_for_export(self, code: str, session: Session | None) -> Round:
        if session is None:
            raise NotAuthenticatedError(ErrorContext(round_code=code))
        round_ = await self.rounds.load(code)
        if not round_.is_host(session.participant_id):
            raise NotHostError(
                "export all files",
                ErrorContext(round_code=code, participant_id=session.participant_id),
            )
        if not round_.submissions and not round_.sample_file_id:
            raise FileNotFoundInRoundError(
                "No files to export", ErrorContext(round_code=code),
            )
        return round_

    def build_archive(self, round_: Round, now: datetime | None = None) -> ExportBundle:
        now = now or datetime.now(timezone.utc)
        bundle = ExportBundle(
            filename=export_filename(round_.name, now.strftime("%Y%m%d_%H%M%S")),
            data=b"",
        )
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry in plan_export(round_):
                try:
                    path = self.files.path_for(round_.id, entry.filename)
                    archive.write(path, arcname=entry.archive_name)
                except (OSError, FileNotFoundInRoundError) as e:
                    logger.warning(
                        f"Failed to add {entry.filename} to export: {e}",
                        extra=log_context(
                            round_code=round_.join_code, stored_file=entry.filename,
                        ),
                    )
                    bundle.skipped.append(entry.archive_name)
                    continue
                bundle.included.append(entry.archive_name)

        bundle.data = buffer.getvalue()
        logger.info(
            f"Exported {len(bundle.included)} files "
            f"({len(bundle.skipped)} skipped) for round by host",
            extra=log_context(round_code=round_.join_code),
        )
        return bundle
