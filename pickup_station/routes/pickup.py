from flask import Blueprint, current_app, jsonify, request
from PIL import UnidentifiedImageError

from pickup_station.api_client import ApiError
from pickup_station.camera import FACING_ENVIRONMENT, FACING_USER
from pickup_station.constants.status import RequestStatus
from pickup_station.pickup_flow import InvalidTransition
from pickup_station.station import StationBusy

bp = Blueprint("pickup", __name__, url_prefix="/pickup")


def get_station():
    return current_app.extensions["pickup_station"]


@bp.errorhandler(StationBusy)
def station_busy(e):
    return jsonify({"success": False, "error": e.message}), 409


@bp.errorhandler(InvalidTransition)
def invalid_transition(e):
    return jsonify({"success": False, "error": e.message}), 400


@bp.route("/state")
def state():
    return jsonify(get_station().state())


# ============================
# MODE SELECTION
# ============================
@bp.route("/mode/code", methods=["POST"])
def choose_code():
    return jsonify(get_station().choose_code())


@bp.route("/mode/scan", methods=["POST"])
def choose_scan():
    data = request.get_json(silent=True) or {}
    facing = data.get("facing", FACING_ENVIRONMENT)
    if facing not in (FACING_ENVIRONMENT, FACING_USER):
        return jsonify({"success": False, "error": f"Unknown camera facing '{facing}'"}), 400
    return jsonify(get_station().start_scan(facing))


@bp.route("/scan/close", methods=["POST"])
def close_scan():
    return jsonify(get_station().close_scan())


@bp.route("/back", methods=["POST"])
def back():
    return jsonify(get_station().back())


@bp.route("/reset", methods=["POST"])
def reset():
    """Confirm another pickup."""
    return jsonify(get_station().reset())


# ============================
# CODE ENTRY
# ============================
@bp.route("/code", methods=["POST"])
def edit_code():
    data = request.get_json(silent=True) or {}
    return jsonify(get_station().enter_code(data.get("code", "")))


@bp.route("/submit", methods=["POST"])
def submit_code():
    data = request.get_json(silent=True) or {}
    outcome = get_station().submit_code(data.get("code"))
    status = 200 if outcome.ok else 400
    return jsonify({**outcome.to_dict(), "state": get_station().state()}), status


@bp.route("/requests/<request_id>/complete", methods=["POST"])
def complete_request(request_id):
    data = request.get_json(silent=True) or {}
    outcome = get_station().submit_code_for_request(request_id, data.get("code"))
    status = 200 if outcome.ok else 400
    return jsonify({**outcome.to_dict(), "state": get_station().state()}), status


# ============================
# QR SNAPSHOTS (browser camera)
# ============================
@bp.route("/scan/snapshot", methods=["POST"])
def scan_snapshot():
    """Decode a frame posted by the browser; submit it if it holds a QR code."""
    file = request.files.get("image")
    if not file:
        return jsonify({"success": False, "error": "No image uploaded"}), 400

    file.stream.seek(0)
    raw_bytes = file.read()

    try:
        outcome = get_station().handle_snapshot(raw_bytes)
    except (StationBusy, InvalidTransition):
        raise
    except UnidentifiedImageError:
        return jsonify({"success": False, "error": "Uploaded file is not an image"}), 400
    except Exception as e:
        current_app.logger.error(f"Snapshot decode failed: {e}")
        return jsonify({"success": False, "error": f"Processing failed: {str(e)}"}), 500

    if outcome is None:
        return jsonify({"success": False, "decoded": False, "state": get_station().state()})
    return jsonify({**outcome.to_dict(), "decoded": True, "state": get_station().state()})


# ============================
# RATING PROMPT
# ============================
@bp.route("/rate", methods=["POST"])
def rate():
    data = request.get_json(silent=True) or {}
    try:
        new_state = get_station().rate(data.get("rating"), data.get("feedback", ""))
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except ApiError as e:
        return jsonify({"success": False, "error": e.message or "Failed to submit rating"}), e.status_code or 502

    return jsonify({"success": True, "message": "Thank you for your feedback!", "state": new_state})


# ============================
# PENDING PICKUPS
# ============================
@bp.route("/pending")
def pending_pickups():
    """Approved requests still waiting for pickup verification."""
    try:
        requests_ = get_station().coordinator.client.my_requests()
    except ApiError as e:
        current_app.logger.error(f"Failed to load requests: {e}")
        return jsonify({"success": False, "error": e.message or "Failed to load requests"}), e.status_code or 502

    pickups = []
    for req in requests_:
        if req.get("status") != RequestStatus.APPROVED:
            continue
        donation = req.get("donation") if isinstance(req.get("donation"), dict) else {}
        donor = donation.get("donor") if isinstance(donation.get("donor"), dict) else {}
        photos = donation.get("foodPhotos") or []
        pickups.append({
            "id": req.get("_id"),
            "food_title": donation.get("foodTitle") or "Food Donation",
            "donor_name": donor.get("name") or "Donor",
            "donor_phone": donation.get("donorPhone"),
            "photo": photos[0] if photos else donation.get("foodPhoto"),
        })

    return jsonify({"success": True, "count": len(pickups), "pickups": pickups})
