import json
import pytest

from pickup_station.constants.status import OutcomeKind
from pickup_station.credentials import (
    PICKUP_QR_TYPE,
    INVALID_QR_FORMAT,
    INVALID_QR_TYPE,
    CredentialError,
    build_qr_payload,
    normalize_code,
    parse_qr_payload,
    validate_code,
)


# ==========================================
#  CONFIRMATION CODE
# ==========================================

def test_normalize_code_trims_and_uppercases():
    assert normalize_code("  qq7x2m ") == "QQ7X2M"
    assert normalize_code(None) == ""


def test_validate_code_is_case_insensitive():
    assert validate_code("ab12cd") == validate_code("AB12CD") == "AB12CD"


@pytest.mark.parametrize("raw, fragment", [
    ("", "enter the confirmation code"),
    ("   ", "enter the confirmation code"),
    ("AB12C", "6 characters"),
    ("AB12CD7", "6 characters"),
    ("AB-12C", "letters and numbers"),
])
def test_validate_code_rejects_bad_shapes(raw, fragment):
    with pytest.raises(CredentialError) as exc:
        validate_code(raw)
    assert exc.value.kind == OutcomeKind.VALIDATION
    assert fragment in exc.value.message


# ==========================================
#  QR PAYLOAD
# ==========================================

def test_parse_qr_payload_accepts_pickup_payload():
    text = build_qr_payload("req-1", "don-1", "qq7x2m", timestamp=1)
    payload = parse_qr_payload(text)
    assert payload["type"] == PICKUP_QR_TYPE
    assert payload["requestId"] == "req-1"
    assert payload["code"] == "QQ7X2M"


@pytest.mark.parametrize("text", ["not json", "", "{type: FEED_IN_NEED_PICKUP}", "https://example.com/qr"])
def test_parse_qr_payload_rejects_non_json(text):
    with pytest.raises(CredentialError) as exc:
        parse_qr_payload(text)
    assert exc.value.kind == OutcomeKind.FORMAT
    assert exc.value.message == INVALID_QR_FORMAT


@pytest.mark.parametrize("text", [
    '{"type":"SOME_OTHER_APP"}',
    '{"type":"feed_in_need_pickup"}',
    '{"code":"QQ7X2M"}',
    '["FEED_IN_NEED_PICKUP"]',
    '42',
    'null',
])
def test_parse_qr_payload_rejects_foreign_payloads(text):
    with pytest.raises(CredentialError) as exc:
        parse_qr_payload(text)
    assert exc.value.kind == OutcomeKind.SENTINEL
    assert exc.value.message == INVALID_QR_TYPE


def test_build_qr_payload_matches_backend_shape():
    payload = json.loads(build_qr_payload(17, 42, "ab12cd", timestamp=1700000000000))
    assert payload == {
        "type": "FEED_IN_NEED_PICKUP",
        "requestId": "17",
        "donationId": "42",
        "code": "AB12CD",
        "timestamp": 1700000000000,
    }


def test_build_qr_payload_without_request_id():
    payload = json.loads(build_qr_payload(None, "don-1", "AB12CD"))
    assert payload["requestId"] is None
    assert isinstance(payload["timestamp"], int)
