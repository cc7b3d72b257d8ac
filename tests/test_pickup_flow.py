import pytest

from conftest import COMPLETED_REQUEST
from pickup_station.pickup_flow import (
    TRANSITIONS,
    FlowEvent,
    InvalidTransition,
    PickupFlow,
    PickupMode,
    next_mode,
    rating_prompt_for,
)


def flow_in(mode):
    flow = PickupFlow()
    flow.mode = mode
    return flow


def test_initial_state():
    flow = PickupFlow()
    assert flow.to_dict() == {
        "mode": "select",
        "code": "",
        "error": "",
        "verifying": False,
        "completed_request": None,
        "rating_prompt": None,
    }


@pytest.mark.parametrize("mode, event, expected", [
    (PickupMode.SELECT, FlowEvent.CHOOSE_SCAN, PickupMode.SCAN),
    (PickupMode.SELECT, FlowEvent.CHOOSE_CODE, PickupMode.CODE),
    (PickupMode.SCAN, FlowEvent.SCAN_FAILED, PickupMode.CODE),
    (PickupMode.SCAN, FlowEvent.CLOSE_SCAN, PickupMode.SELECT),
    (PickupMode.CODE, FlowEvent.SWITCH_TO_SCAN, PickupMode.SCAN),
    (PickupMode.CODE, FlowEvent.BACK, PickupMode.SELECT),
    (PickupMode.CODE, FlowEvent.VERIFIED, PickupMode.SUCCESS),
    (PickupMode.SCAN, FlowEvent.VERIFIED, PickupMode.SUCCESS),
    (PickupMode.SUCCESS, FlowEvent.RESET, PickupMode.SELECT),
])
def test_allowed_transitions(mode, event, expected):
    assert next_mode(mode, event) == expected


def test_every_other_pair_is_rejected():
    for mode in PickupMode:
        for event in FlowEvent:
            if (mode, event) in TRANSITIONS:
                continue
            with pytest.raises(InvalidTransition):
                next_mode(mode, event)


def test_success_is_only_left_through_reset():
    flow = flow_in(PickupMode.SUCCESS)
    for event in FlowEvent:
        assert flow.can(event) == (event == FlowEvent.RESET)


def test_scan_failure_keeps_message_for_code_view():
    flow = flow_in(PickupMode.SCAN)
    flow.apply(FlowEvent.SCAN_FAILED, message="Invalid QR code. Please scan the correct pickup QR code.")

    assert flow.mode == PickupMode.CODE
    assert flow.error == "Invalid QR code. Please scan the correct pickup QR code."


def test_switching_back_to_scan_clears_error():
    flow = flow_in(PickupMode.SCAN)
    flow.apply(FlowEvent.SCAN_FAILED, message="No camera found.")
    flow.apply(FlowEvent.SWITCH_TO_SCAN)

    assert flow.mode == PickupMode.SCAN
    assert flow.error == ""


def test_editing_code_uppercases_truncates_and_clears_error():
    flow = flow_in(PickupMode.CODE)
    flow.apply(FlowEvent.CODE_FAILED, message="Invalid confirmation code")
    flow.apply(FlowEvent.EDIT_CODE, code="qq7x2mzz")

    assert flow.code == "QQ7X2M"
    assert flow.error == ""


def test_code_failure_keeps_entered_code():
    flow = flow_in(PickupMode.CODE)
    flow.apply(FlowEvent.EDIT_CODE, code="qq7x2m")
    flow.apply(FlowEvent.CODE_FAILED, message="Invalid confirmation code")

    assert flow.mode == PickupMode.CODE
    assert flow.code == "QQ7X2M"
    assert flow.error == "Invalid confirmation code"


def test_reset_clears_all_transient_state():
    flow = flow_in(PickupMode.CODE)
    flow.apply(FlowEvent.EDIT_CODE, code="QQ7X2M")
    flow.apply(FlowEvent.VERIFIED, completed_request=COMPLETED_REQUEST)
    assert flow.mode == PickupMode.SUCCESS

    flow.apply(FlowEvent.RESET)

    assert flow.mode == PickupMode.SELECT
    assert flow.code == ""
    assert flow.error == ""
    assert flow.completed_request is None


def test_machine_can_be_reentered_for_sequential_pickups():
    flow = PickupFlow()
    for _ in range(3):
        flow.apply(FlowEvent.CHOOSE_CODE)
        flow.apply(FlowEvent.VERIFIED, completed_request=COMPLETED_REQUEST)
        flow.apply(FlowEvent.RESET)
    assert flow.mode == PickupMode.SELECT


def test_rating_prompt_names_donor():
    flow = flow_in(PickupMode.CODE)
    flow.apply(FlowEvent.VERIFIED, completed_request=COMPLETED_REQUEST)

    assert flow.rating_prompt() == {
        "request_id": "req-1",
        "rating_type": "receiver_to_donor",
        "target_name": "Hotel Saffron",
    }


def test_rating_prompt_defaults_when_donation_not_populated():
    prompt = rating_prompt_for({"requestId": "req-2", "donation": "don-2"})
    assert prompt["request_id"] == "req-2"
    assert prompt["target_name"] == "Donor"


def test_invalid_transition_message():
    with pytest.raises(InvalidTransition) as exc:
        flow_in(PickupMode.SELECT).apply(FlowEvent.RESET)
    assert exc.value.message == "Cannot reset while in select mode"
