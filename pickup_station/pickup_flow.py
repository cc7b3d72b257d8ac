"""
Dual-mode pickup verification state machine.

    SELECT --CHOOSE_SCAN--> SCAN --SCAN_FAILED--> CODE
    SELECT --CHOOSE_CODE--> CODE --SWITCH_TO_SCAN--> SCAN
    SCAN/CODE --VERIFIED--> SUCCESS --RESET--> SELECT

Every (mode, event) pair missing from TRANSITIONS is rejected.
"""
from enum import Enum

from pickup_station.constants.status import RatingType
from pickup_station.credentials import CODE_LENGTH


class PickupMode(Enum):
    SELECT = "select"
    CODE = "code"
    SCAN = "scan"
    SUCCESS = "success"


class FlowEvent(Enum):
    CHOOSE_SCAN = "choose_scan"
    CHOOSE_CODE = "choose_code"
    SCAN_FAILED = "scan_failed"
    CLOSE_SCAN = "close_scan"
    EDIT_CODE = "edit_code"
    CODE_FAILED = "code_failed"
    SWITCH_TO_SCAN = "switch_to_scan"
    BACK = "back"
    VERIFIED = "verified"
    RESET = "reset"


TRANSITIONS = {
    (PickupMode.SELECT, FlowEvent.CHOOSE_SCAN): PickupMode.SCAN,
    (PickupMode.SELECT, FlowEvent.CHOOSE_CODE): PickupMode.CODE,
    (PickupMode.SCAN, FlowEvent.SCAN_FAILED): PickupMode.CODE,
    (PickupMode.SCAN, FlowEvent.CLOSE_SCAN): PickupMode.SELECT,
    (PickupMode.SCAN, FlowEvent.VERIFIED): PickupMode.SUCCESS,
    (PickupMode.CODE, FlowEvent.EDIT_CODE): PickupMode.CODE,
    (PickupMode.CODE, FlowEvent.CODE_FAILED): PickupMode.CODE,
    (PickupMode.CODE, FlowEvent.SWITCH_TO_SCAN): PickupMode.SCAN,
    (PickupMode.CODE, FlowEvent.BACK): PickupMode.SELECT,
    (PickupMode.CODE, FlowEvent.VERIFIED): PickupMode.SUCCESS,
    (PickupMode.SUCCESS, FlowEvent.RESET): PickupMode.SELECT,
}

# Events whose message argument becomes the displayed error
ERROR_EVENTS = (FlowEvent.SCAN_FAILED, FlowEvent.CODE_FAILED)
# Events that wipe any displayed error
CLEARING_EVENTS = (
    FlowEvent.CHOOSE_SCAN,
    FlowEvent.CHOOSE_CODE,
    FlowEvent.EDIT_CODE,
    FlowEvent.SWITCH_TO_SCAN,
    FlowEvent.BACK,
    FlowEvent.VERIFIED,
    FlowEvent.RESET,
)


class InvalidTransition(Exception):
    def __init__(self, mode, event, message=None):
        self.message = message or f"Cannot {event.value.replace('_', ' ')} while in {mode.value} mode"
        super().__init__(self.message)
        self.mode = mode
        self.event = event


def next_mode(mode, event):
    try:
        return TRANSITIONS[(mode, event)]
    except KeyError:
        raise InvalidTransition(mode, event)


class PickupFlow:
    def __init__(self):
        self.mode = PickupMode.SELECT
        self.code = ""
        self.error = ""
        self.verifying = False
        self.completed_request = None

    def can(self, event):
        return (self.mode, event) in TRANSITIONS

    def apply(self, event, message=None, code=None, completed_request=None):
        target = next_mode(self.mode, event)

        if event in ERROR_EVENTS:
            self.error = message or ""
        elif event in CLEARING_EVENTS:
            self.error = ""

        if event == FlowEvent.EDIT_CODE:
            self.code = (code or "").upper()[:CODE_LENGTH]
        elif event == FlowEvent.VERIFIED:
            self.code = ""
            self.completed_request = completed_request
        elif event == FlowEvent.RESET:
            self.code = ""
            self.completed_request = None

        self.mode = target
        return target

    def rating_prompt(self):
        if self.mode != PickupMode.SUCCESS or not self.completed_request:
            return None
        return rating_prompt_for(self.completed_request)

    def to_dict(self):
        return {
            "mode": self.mode.value,
            "code": self.code,
            "error": self.error,
            "verifying": self.verifying,
            "completed_request": self.completed_request,
            "rating_prompt": self.rating_prompt(),
        }


def rating_prompt_for(completed_request):
    # donation and donor may come back as bare ids when not populated
    donation = completed_request.get("donation")
    donation = donation if isinstance(donation, dict) else {}
    donor = donation.get("donor")
    donor = donor if isinstance(donor, dict) else {}
    return {
        "request_id": completed_request.get("_id") or completed_request.get("requestId"),
        "rating_type": RatingType.RECEIVER_TO_DONOR,
        "target_name": donor.get("name") or "Donor",
    }
