"""Round Record — tests for stored JSON shape and copy semantics."""

import json

from soundround.models.round import Round
from tests.builders import add_submission, make_round


def test_blob_uses_camel_case_keys():
    round_ = add_submission(make_round("bob"), "bob", "f.wav", assigned_to_id="host")
    data = json.loads(round_.to_blob())

    assert data["joinCode"] == "ABC123"
    assert data["hostId"] == "host"
    assert data["allowGuestDownload"] is False
    assert data["sampleFileId"] is None
    assert data["participants"]["bob"]["displayName"] == "Bob"
    assert data["submissions"]["bob"]["assignedToId"] == "host"


def test_blob_round_trip():
    round_ = add_submission(make_round("bob", sample="S.wav"), "bob", "f.wav")
    assert Round.from_blob(round_.to_blob()) == round_


def test_copy_for_update_is_detached():
    round_ = make_round("bob")
    copy = round_.copy_for_update()
    copy.participants["bob"].display_name = "Robert"
    assert round_.participants["bob"].display_name == "Bob"


def test_membership_helpers():
    round_ = make_round("bob")
    assert round_.is_participant("bob")
    assert not round_.is_participant(None)
    assert round_.is_host("host")
    assert not round_.is_host("bob")
    assert round_.display_name_of("nobody") is None
