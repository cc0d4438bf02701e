"""Filenames — stored-name generation and validation of untrusted upload names.

Invariants:
    - Stored names are <owner>_<8 hex>_<unix seconds><ext>; owner is a participant id or SAMPLE
    - The random part makes two uploads in the same second distinct
    - audio_extension() returns a lowercase allow-listed extension or None
    - Untrusted names never keep directory components
"""

import secrets
from datetime import datetime
from pathlib import PurePosixPath, PureWindowsPath

from soundround.core.domain_types import (
    ALLOWED_AUDIO_EXTENSIONS, AUDIO_CONTENT_TYPES, SAMPLE_MARKER,
)


def clean_original_name(raw: str | None) -> str:
    """Strip directory parts from a client-supplied filename."""
    if not raw:
        return ""
    # PureWindowsPath splits on both separators
    return PureWindowsPath(raw).name.strip()


def audio_extension(original_name: str | None) -> str | None:
    suffix = PurePosixPath(clean_original_name(original_name)).suffix.lower()
    return suffix if suffix in ALLOWED_AUDIO_EXTENSIONS else None


def build_stored_filename(
    owner: str, extension: str, now: datetime, token: str | None = None,
) -> str:
    token = token or secrets.token_hex(4)
    return f"{owner}_{token}_{int(now.timestamp())}{extension}"


def build_sample_filename(extension: str, now: datetime, token: str | None = None) -> str:
    return build_stored_filename(SAMPLE_MARKER, extension, now, token)


def content_type_for(filename: str) -> str:
    return AUDIO_CONTENT_TYPES.get(
        PurePosixPath(filename).suffix.lower(), "application/octet-stream",
    )


def archive_safe(name: str) -> str:
    """Make a display name usable as one path segment inside an archive."""
    cleaned = name.replace("/", "_").replace("\\", "_").strip()
    return cleaned or "unnamed"
