"""Submission Service — tests for uploads, replacement, rollback and host samples.

Tests cover:
    - participant upload writes the file and records the submission
    - replacement deletes the superseded file only after the round is saved
    - store save failure removes the new file, keeps the old one, re-raises StoreError
    - rollback delete failure raises FileRollbackError
    - superseded-file delete failure is reported as a warning
    - stream over the byte cap leaves no file behind
    - telephone walk-through through the service (seed, assignments, re-upload)
    - host sample: host-only, sample mode only, waiting only, replacement
"""

import pytest

from soundround.core.domain_types import RoundMode, RoundState
from soundround.core.errors import (
    FileRollbackError,
    FileStorageError,
    NotAuthenticatedError,
    NotHostError,
    NotParticipantError,
    StoreError,
)
from soundround.core.outcomes import Accepted, Reason
from soundround.services.submissions import SubmissionService
from tests.fakes import FakeUpload


async def _session(lifecycle, outcome):
    return await lifecycle.sessions.resolve(outcome.session_token)


async def _round_with(lifecycle, *names, mode=RoundMode.TELEPHONE, start=True):
    """Create a round, join `names`, optionally activate. Returns (code, host, {name: session})."""
    created = await lifecycle.create_round("Jam", mode, "Hana")
    code = created.payload["code"]
    host = await _session(lifecycle, created)
    members = {}
    for name in names:
        members[name] = await _session(lifecycle, await lifecycle.join_round(code, name, None))
    if start:
        await lifecycle.update_state(code, host, RoundState.ACTIVE)
    return code, host, members


def _files(upload_storage, round_):
    return sorted(p.name for p in upload_storage.round_dir(round_.id).iterdir())


# ─── upload ──────────────────────────────────────────────────────

async def test_upload_records_submission(lifecycle, submissions, round_store, upload_storage):
    code, _, m = await _round_with(lifecycle, "Bea")
    bea = m["Bea"]

    outcome = await submissions.upload(code, bea, FakeUpload("take.wav", b"abc"))

    assert isinstance(outcome, Accepted)
    payload = outcome.payload
    assert payload["originalName"] == "take.wav"
    assert payload["size"] == 3
    assert payload["uploadedBy"] == "Bea"
    assert payload["isReplacement"] is False
    assert payload["filename"].startswith(f"{bea.participant_id}_")
    round_ = await round_store.load(code)
    assert round_.submissions[bea.participant_id].filename == payload["filename"]
    assert _files(upload_storage, round_) == [payload["filename"]]


async def test_upload_requires_session(lifecycle, submissions):
    code, _, _ = await _round_with(lifecycle)
    with pytest.raises(NotAuthenticatedError):
        await submissions.upload(code, None, FakeUpload("take.wav"))


async def test_upload_from_other_round_session(lifecycle, submissions):
    code, _, _ = await _round_with(lifecycle)
    _, stranger_host, _ = await _round_with(lifecycle)
    with pytest.raises(NotParticipantError):
        await submissions.upload(code, stranger_host, FakeUpload("take.wav"))


async def test_upload_rejected_while_waiting_writes_nothing(
    lifecycle, submissions, round_store, upload_storage,
):
    code, host, _ = await _round_with(lifecycle, start=False)
    outcome = await submissions.upload(code, host, FakeUpload("take.wav"))

    assert outcome.reason == Reason.ROUND_NOT_ACTIVE
    assert _files(upload_storage, await round_store.load(code)) == []


async def test_upload_invalid_type(lifecycle, submissions):
    code, host, _ = await _round_with(lifecycle)
    outcome = await submissions.upload(code, host, FakeUpload("notes.txt"))
    assert outcome.reason == Reason.INVALID_FILE_TYPE


async def test_upload_missing_file(lifecycle, submissions):
    code, host, _ = await _round_with(lifecycle)
    assert (await submissions.upload(code, host, None)).reason == Reason.MISSING_FILE


async def test_stream_over_cap_leaves_no_file(
    lifecycle, round_store, upload_storage, settings,
):
    settings.max_upload_bytes = 4
    service = SubmissionService(round_store, upload_storage, settings)
    code, host, _ = await _round_with(lifecycle)

    # size unknown up front, so only the streamed byte count can catch it
    outcome = await service.upload(code, host, FakeUpload("big.wav", b"0123456789", size=None))

    assert outcome.reason == Reason.FILE_TOO_LARGE
    round_ = await round_store.load(code)
    assert round_.submissions == {}
    assert _files(upload_storage, round_) == []


# ─── replacement and rollback ────────────────────────────────────

async def test_replacement_removes_old_file(lifecycle, submissions, round_store, upload_storage):
    code, host, _ = await _round_with(lifecycle)
    first = await submissions.upload(code, host, FakeUpload("v1.wav"))
    second = await submissions.upload(code, host, FakeUpload("v2.wav"))

    assert second.payload["isReplacement"] is True
    assert second.warnings == []
    round_ = await round_store.load(code)
    assert _files(upload_storage, round_) == [second.payload["filename"]]
    assert first.payload["filename"] != second.payload["filename"]


async def test_save_failure_keeps_old_file_and_removes_new(
    lifecycle, submissions, round_store, upload_storage, kv,
):
    code, host, _ = await _round_with(lifecycle)
    first = await submissions.upload(code, host, FakeUpload("v1.wav"))
    kv.fail_on("set", "round:")

    with pytest.raises(StoreError):
        await submissions.upload(code, host, FakeUpload("v2.wav"))

    kv.clear_failures()
    round_ = await round_store.load(code)
    assert round_.submissions[host.participant_id].filename == first.payload["filename"]
    assert _files(upload_storage, round_) == [first.payload["filename"]]


async def test_rollback_failure_raises_file_rollback_error(
    lifecycle, submissions, upload_storage, kv, monkeypatch,
):
    code, host, _ = await _round_with(lifecycle)
    kv.fail_on("set", "round:")

    def _broken_delete(round_id, filename):
        raise FileStorageError("read-only filesystem", "delete")

    monkeypatch.setattr(upload_storage, "delete", _broken_delete)
    with pytest.raises(FileRollbackError) as exc:
        await submissions.upload(code, host, FakeUpload("v1.wav"))
    assert isinstance(exc.value.__cause__, StoreError)


async def test_superseded_delete_failure_is_warning(
    lifecycle, submissions, round_store, upload_storage,
):
    code, host, _ = await _round_with(lifecycle)
    first = await submissions.upload(code, host, FakeUpload("v1.wav"))
    round_ = await round_store.load(code)
    upload_storage.delete(round_.id, first.payload["filename"])

    second = await submissions.upload(code, host, FakeUpload("v2.wav"))

    assert isinstance(second, Accepted)
    assert second.warnings == [
        f"Could not delete superseded file {first.payload['filename']}",
    ]
    assert second.to_response()["warnings"]


# ─── telephone chain ─────────────────────────────────────────────

async def test_telephone_chain_through_service(lifecycle, submissions, round_store):
    code, host, m = await _round_with(lifecycle, "Bea", "Cal")
    by_id = {s.participant_id: s for s in [host, *m.values()]}
    p0, p1, p2 = sorted(by_id)

    first = await submissions.upload(code, by_id[p0], FakeUpload("seed.wav"))
    round_ = await round_store.load(code)
    assert round_.sample_file_id == first.payload["filename"]
    assert first.payload["assignedToId"] == p1

    second = await submissions.upload(code, by_id[p1], FakeUpload("two.wav"))
    assert second.payload["assignedToId"] == p2

    last = await submissions.upload(code, by_id[p2], FakeUpload("three.wav"))
    assert "assignedToId" not in last.payload
    assert last.payload["message"] == "Your upload is the last in the telephone chain!"

    again = await submissions.upload(code, by_id[p0], FakeUpload("seed2.wav"))
    round_ = await round_store.load(code)
    assert round_.submissions[p0].assigned_to_id == p1
    assert round_.sample_file_id == again.payload["filename"]


# ─── upload_sample ───────────────────────────────────────────────

async def test_host_uploads_sample(lifecycle, submissions, round_store, upload_storage):
    code, host, _ = await _round_with(lifecycle, mode=RoundMode.SAMPLE, start=False)
    outcome = await submissions.upload_sample(code, host, FakeUpload("loop.flac"))

    assert outcome.payload["filename"].startswith("SAMPLE_")
    assert outcome.payload["isReplacement"] is False
    round_ = await round_store.load(code)
    assert round_.sample_file_id == outcome.payload["filename"]
    assert upload_storage.exists(round_.id, outcome.payload["filename"])


async def test_sample_replacement_removes_old_sample(
    lifecycle, submissions, round_store, upload_storage,
):
    code, host, _ = await _round_with(lifecycle, mode=RoundMode.SAMPLE, start=False)
    first = await submissions.upload_sample(code, host, FakeUpload("loop.flac"))
    second = await submissions.upload_sample(code, host, FakeUpload("loop2.flac"))

    assert second.payload["isReplacement"] is True
    round_ = await round_store.load(code)
    assert not upload_storage.exists(round_.id, first.payload["filename"])
    assert _files(upload_storage, round_) == [second.payload["filename"]]


async def test_sample_upload_host_only(lifecycle, submissions):
    code, _, m = await _round_with(lifecycle, "Bea", mode=RoundMode.SAMPLE, start=False)
    with pytest.raises(NotHostError):
        await submissions.upload_sample(code, m["Bea"], FakeUpload("loop.flac"))


async def test_sample_upload_locked_once_active(lifecycle, submissions):
    code, host, _ = await _round_with(lifecycle, mode=RoundMode.SAMPLE, start=True)
    outcome = await submissions.upload_sample(code, host, FakeUpload("loop.flac"))
    assert outcome.reason == Reason.SAMPLE_LOCKED


async def test_sample_upload_wrong_mode(lifecycle, submissions):
    code, host, _ = await _round_with(lifecycle, start=False)
    outcome = await submissions.upload_sample(code, host, FakeUpload("loop.flac"))
    assert outcome.reason == Reason.WRONG_MODE


async def test_sample_mode_remix_after_sample(lifecycle, submissions):
    code, host, m = await _round_with(lifecycle, "Bea", mode=RoundMode.SAMPLE, start=False)
    waiting = await submissions.upload(code, m["Bea"], FakeUpload("remix.wav"))
    assert waiting.reason == Reason.ROUND_NOT_ACTIVE

    await submissions.upload_sample(code, host, FakeUpload("loop.flac"))
    await lifecycle.update_state(code, host, RoundState.ACTIVE)
    outcome = await submissions.upload(code, m["Bea"], FakeUpload("remix.wav"))

    assert outcome.payload["message"] == "Your remix has been uploaded successfully!"
    assert "assignedToId" not in outcome.payload
