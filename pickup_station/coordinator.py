"""
Verification coordinator.

The one place a pickup credential, typed or scanned, becomes a backend
submission. Shape failures are answered locally; everything else goes to
the API exactly once and comes back as a VerificationOutcome.
"""
import logging

from pickup_station.api_client import ApiError
from pickup_station.constants.status import CredentialKind, OutcomeKind
from pickup_station.credentials import CredentialError, parse_qr_payload, validate_code

logger = logging.getLogger(__name__)

PICKUP_CONFIRMED = "Food pickup confirmed!"
CODE_VERIFICATION_FAILED = "Verification failed. Please check the code and try again."
QR_VERIFICATION_FAILED = "Verification failed"


class VerificationOutcome:
    def __init__(self, ok, message, kind, credential_kind, data=None):
        self.ok = ok
        self.message = message
        self.kind = kind
        self.credential_kind = credential_kind
        self.data = data

    @classmethod
    def success(cls, credential_kind, message, data):
        return cls(True, message or PICKUP_CONFIRMED, OutcomeKind.SUCCESS, credential_kind, data=data)

    @classmethod
    def failure(cls, credential_kind, message, kind):
        return cls(False, message, kind, credential_kind)

    def to_dict(self):
        return {
            "success": self.ok,
            "message": self.message,
            "kind": self.kind,
            "credential": self.credential_kind,
            "data": self.data,
        }

    def __repr__(self):
        return f"<VerificationOutcome ok={self.ok} kind={self.kind} message={self.message!r}>"


class VerificationCoordinator:
    """Does not debounce; callers keep one submission in flight at a time."""

    def __init__(self, client):
        self.client = client

    def submit_code(self, raw_code):
        try:
            code = validate_code(raw_code)
        except CredentialError as e:
            return VerificationOutcome.failure(CredentialKind.CODE, e.message, e.kind)

        return self._submit(
            CredentialKind.CODE,
            lambda: self.client.complete_by_code(code),
            CODE_VERIFICATION_FAILED,
        )

    def submit_code_for_request(self, request_id, raw_code):
        try:
            code = validate_code(raw_code)
        except CredentialError as e:
            return VerificationOutcome.failure(CredentialKind.CODE, e.message, e.kind)

        return self._submit(
            CredentialKind.CODE,
            lambda: self.client.complete_request(request_id, code),
            CODE_VERIFICATION_FAILED,
        )

    def submit_qr(self, raw_payload_text):
        try:
            parse_qr_payload(raw_payload_text)
        except CredentialError as e:
            logger.info(f"Rejected scanned QR locally ({e.kind})")
            return VerificationOutcome.failure(CredentialKind.QR, e.message, e.kind)

        # Forwarded verbatim; extra fields are the backend's business
        return self._submit(
            CredentialKind.QR,
            lambda: self.client.complete_by_qr(raw_payload_text),
            QR_VERIFICATION_FAILED,
        )

    def _submit(self, credential_kind, call, default_failure):
        try:
            body = call()
        except ApiError as e:
            return VerificationOutcome.failure(
                credential_kind, e.message or default_failure, OutcomeKind.REJECTED
            )

        logger.info(f"Pickup confirmed via {credential_kind}")
        return VerificationOutcome.success(credential_kind, body.get("message"), body.get("data"))
