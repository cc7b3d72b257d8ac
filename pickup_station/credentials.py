"""
Pickup credentials: the 6-character confirmation code and the QR payload.

Both forms resolve server-side to the same approved request. Only their
shape is checked here; expiry, ownership and "already completed" are the
backend's call.
"""
import json
import time

from pickup_station.constants.status import OutcomeKind

PICKUP_QR_TYPE = "FEED_IN_NEED_PICKUP"
CODE_LENGTH = 6

INVALID_QR_FORMAT = "Invalid QR code format. Please try entering the code manually."
INVALID_QR_TYPE = "Invalid QR code. Please scan the correct pickup QR code."


class CredentialError(ValueError):
    """Raised when a credential fails the local shape checks."""

    def __init__(self, message, kind):
        super().__init__(message)
        self.message = message
        self.kind = kind


def normalize_code(raw):
    return (raw or "").strip().upper()


def validate_code(raw):
    """Return the normalized code or raise CredentialError."""
    code = normalize_code(raw)
    if not code:
        raise CredentialError("Please enter the confirmation code.", OutcomeKind.VALIDATION)
    if len(code) != CODE_LENGTH:
        raise CredentialError(
            f"Confirmation code must be {CODE_LENGTH} characters.", OutcomeKind.VALIDATION
        )
    if not code.isalnum() or not code.isascii():
        raise CredentialError(
            "Confirmation code must contain only letters and numbers.", OutcomeKind.VALIDATION
        )
    return code


def parse_qr_payload(text):
    """
    Parse decoded QR text into a pickup payload dict.

    Raises CredentialError(kind="format") for text that is not JSON and
    CredentialError(kind="sentinel") for JSON that is not a pickup payload.
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        raise CredentialError(INVALID_QR_FORMAT, OutcomeKind.FORMAT)

    if not isinstance(payload, dict) or payload.get("type") != PICKUP_QR_TYPE:
        raise CredentialError(INVALID_QR_TYPE, OutcomeKind.SENTINEL)
    return payload


def build_qr_payload(request_id, donation_id, code, timestamp=None):
    """Serialize a pickup payload the way the backend issues it."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return json.dumps({
        "type": PICKUP_QR_TYPE,
        "requestId": str(request_id) if request_id is not None else None,
        "donationId": str(donation_id),
        "code": normalize_code(code),
        "timestamp": timestamp,
    })
