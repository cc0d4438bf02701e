"""Upload Storage — round-scoped blob files on the local filesystem.

Invariants:
    - Files live under <root>/<round id>/<stored filename> (round id, not join code)
    - path_for() never returns a path outside the round directory
    - write_stream() removes its partial file on any early exit, cancellation included
    - OSError is mapped to FileStorageError; a missing file on delete is reported as such

Design Decisions:
    - Streams in 1 MiB chunks so the size cap is enforced without buffering the whole upload
"""

import logging
from pathlib import Path
from typing import Protocol

from soundround.core.errors import (
    ErrorContext, FileNotFoundInRoundError, FileStorageError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


class UploadTooLarge(Exception):
    """Stream exceeded the byte limit; partial file already removed."""

    def __init__(self, limit: int):
        super().__init__(f"upload exceeds {limit} bytes")
        self.limit = limit


class UploadStorage:
    """Round-scoped file store rooted at a single directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def round_dir(self, round_id: str) -> Path:
        return self.root / round_id

    def ensure_round_dir(self, round_id: str) -> Path:
        path = self.round_dir(round_id)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create upload directory {path}: {e}")
            raise FileStorageError("Could not create upload directory", "mkdir")
        return path

    def path_for(self, round_id: str, filename: str) -> Path:
        base = self.round_dir(round_id).resolve()
        candidate = (base / filename).resolve()
        if candidate.parent != base:
            raise FileNotFoundInRoundError(
                context=ErrorContext(filename=filename),
            )
        return candidate

    async def write_stream(
        self, round_id: str, filename: str, source: AsyncReadable, max_bytes: int,
    ) -> int:
        """Copy source into the round directory. Returns bytes written."""
        self.ensure_round_dir(round_id)
        path = self.path_for(round_id, filename)
        written = 0
        try:
            dst = open(path, "xb")
        except OSError as e:
            logger.error(f"Failed to create {path}: {e}")
            raise FileStorageError("Failed to save file", "create")
        try:
            with dst:
                while chunk := await source.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > max_bytes:
                        break
                    dst.write(chunk)
        except OSError as e:
            self._discard(path)
            logger.error(f"Failed to write {path}: {e}")
            raise FileStorageError("Failed to save file", "write")
        except BaseException:
            # cancelled, or the source itself raised
            self._discard(path)
            raise

        if written > max_bytes:
            self._discard(path)
            raise UploadTooLarge(max_bytes)
        return written

    def delete(self, round_id: str, filename: str) -> None:
        path = self.path_for(round_id, filename)
        try:
            path.unlink()
        except FileNotFoundError:
            raise FileNotFoundInRoundError(
                f"File {filename} already absent", ErrorContext(filename=filename),
            )
        except OSError as e:
            raise FileStorageError(str(e), "delete", ErrorContext(filename=filename))

    def exists(self, round_id: str, filename: str) -> bool:
        try:
            return self.path_for(round_id, filename).is_file()
        except FileNotFoundInRoundError:
            return False

    def _discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to discard partial file {path}: {e}")
