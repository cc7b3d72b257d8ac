# pickup_station/constants/status.py

class CameraErrorKind:
    PERMISSION_DENIED = "permission_denied"
    NO_CAMERA = "no_camera"
    START_FAILED = "start_failed"

    MESSAGES = {
        PERMISSION_DENIED: "Camera permission denied. Please allow camera access to scan QR codes.",
        NO_CAMERA: "No camera found. Please use a device with a camera.",
        START_FAILED: "Failed to start camera. Please try again.",
    }


class CredentialKind:
    CODE = "code"
    QR = "qr"


class OutcomeKind:
    SUCCESS = "success"
    VALIDATION = "validation"       # rejected before the network call
    FORMAT = "format"               # QR text is not JSON
    SENTINEL = "sentinel"           # JSON but not one of our pickup payloads
    REJECTED = "rejected"           # backend said no


class RequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RatingType:
    RECEIVER_TO_DONOR = "receiver_to_donor"
    DONOR_TO_RECEIVER = "donor_to_receiver"
