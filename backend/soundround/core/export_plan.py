"""Export Plan — deterministic archive layout for a round, pure.

Invariants:
    - The sample (if any) comes first as 00_sample_<stored name>
    - Submissions follow, sorted by owner display name (case-sensitive), ties by participant id
    - Submission entries are NN_<display name>_<original name>, NN starting at 01
    - Plan depends only on the round record, never on the filesystem
"""

from dataclasses import dataclass

from soundround.core.filenames import archive_safe
from soundround.models.round import Round


@dataclass(frozen=True)
class ExportEntry:
    archive_name: str
    filename: str


def plan_export(round_: Round) -> list[ExportEntry]:
    entries: list[ExportEntry] = []
    if round_.sample_file_id:
        entries.append(ExportEntry(
            archive_name=f"00_sample_{round_.sample_file_id}",
            filename=round_.sample_file_id,
        ))

    owned = sorted(
        round_.submissions.values(),
        key=lambda s: (
            round_.display_name_of(s.participant_id) or "", s.participant_id,
        ),
    )
    for index, submission in enumerate(owned, start=1):
        owner = round_.display_name_of(submission.participant_id) or "unknown"
        original = archive_safe(submission.original_name or submission.filename)
        entries.append(ExportEntry(
            archive_name=f"{index:02d}_{archive_safe(owner)}_{original}",
            filename=submission.filename,
        ))
    return entries


def export_filename(round_name: str, stamp: str) -> str:
    return f"{archive_safe(round_name)}_{stamp}_export.zip"
