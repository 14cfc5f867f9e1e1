"""
Tests for the track request validators.
"""

import json

import pytest

from app.errors import InvalidPayload
from app.event_tracking.validation import validate_read_request, validate_write_request


def _compact(data):
    return json.dumps(data, separators=(",", ":"))


class TestValidateReadRequest:
    """Test GET parameter validation."""

    def test_missing_params(self):
        with pytest.raises(InvalidPayload, match="Missing get params"):
            validate_read_request(None)

    def test_missing_uid(self):
        params = {"fake": "param"}
        with pytest.raises(InvalidPayload) as exc_info:
            validate_read_request(params)
        assert str(exc_info.value) == "Missing uid param " + _compact(params)

    def test_single_character_uid(self):
        with pytest.raises(InvalidPayload):
            validate_read_request({"uid": "a"})

    def test_valid_uid(self):
        assert validate_read_request({"uid": "1234"}) == "1234"


class TestValidateWriteRequest:
    """Test POST body validation."""

    @pytest.mark.parametrize("body", [None, "", b"", "   "])
    def test_missing_body(self, body):
        with pytest.raises(InvalidPayload, match="Missing post data"):
            validate_write_request(body)

    def test_unparsable_body(self):
        with pytest.raises(InvalidPayload) as exc_info:
            validate_write_request("{not json")
        assert str(exc_info.value) == "Invalid post data {not json"

    def test_non_object_body(self):
        with pytest.raises(InvalidPayload, match="Invalid post data"):
            validate_write_request("[1, 2]")

    @pytest.mark.parametrize("fake_input", [
        # no uid
        {"action": "fakeAction", "data": {"id": "fakeItemId"}},
        # uid shorter than 4 chars
        {"uid": "123", "action": "fakeAction", "data": {"id": "fakeItemId"}},
        # uid longer than 15 chars
        {"uid": "0123456789ABCDEF", "action": "fakeAction", "data": {"id": "fakeItemId"}},
        # uid with a colon
        {"uid": "user:12345", "action": "fakeAction", "data": {"id": "fakeItemId"}},
        # no action
        {"uid": "12345", "data": {"id": "fakeItemId"}},
        # action with a space
        {"uid": "12345", "action": "fake Action", "data": {"id": "fakeItemId"}},
        # action with a non-ASCII letter
        {"uid": "12345", "action": "fakeAçtion", "data": {"id": "fakeItemId"}},
        # action shorter than 4 chars
        {"uid": "12345", "action": "fct", "data": {"id": "fakeItemId"}},
        # action longer than 15 chars
        {"uid": "12345", "action": "fakeActionfakeAction", "data": {"id": "fakeItemId"}},
        # no data
        {"uid": "12345", "action": "fakeAction"},
        # no data.id
        {"uid": "12345", "action": "fakeAction", "data": {"fake": "Data"}},
        # empty data.id
        {"uid": "12345", "action": "fakeAction", "data": {"id": ""}},
    ])
    def test_rejects_invalid_payload(self, fake_input):
        body = json.dumps(fake_input)
        with pytest.raises(InvalidPayload) as exc_info:
            validate_write_request(body)
        assert str(exc_info.value) == "Invalid post data " + _compact(fake_input)

    @pytest.mark.parametrize("uid,action", [
        ("1234", "abcd"),
        ("123456789012345", "a23456789012345"),
        ("user_42x", "object_Visited"),
    ])
    def test_accepts_boundaries(self, uid, action):
        payload = {"uid": uid, "action": action, "data": {"id": "fakeItemId"}}
        assert validate_write_request(json.dumps(payload)) == payload

    def test_accepts_parsed_mapping(self):
        payload = {"uid": "12345", "action": "fakeAction", "data": {"id": "fakeItemId"}}
        assert validate_write_request(payload) == payload
