from flask import Blueprint, current_app, jsonify, send_file
import io

from pickup_station.api_client import ApiError
from pickup_station.utils.qr_render import render_pickup_qr

bp = Blueprint("donor", __name__, url_prefix="/donor")


def _fetch_credentials(request_id):
    client = current_app.extensions["pickup_station"].coordinator.client
    return client.pickup_qr_data(request_id)


@bp.route("/requests/<request_id>/credentials")
def credentials(request_id):
    """Code and QR text the donor shows the receiver at handover."""
    try:
        data = _fetch_credentials(request_id)
    except ApiError as e:
        return jsonify({"success": False, "error": e.message or "Failed to load pickup QR code"}), e.status_code or 502

    return jsonify({
        "success": True,
        "confirmation_code": data.get("confirmationCode"),
        "qr_data": data.get("qrCodeData"),
    })


@bp.route("/requests/<request_id>/qr.png")
def qr_image(request_id):
    try:
        data = _fetch_credentials(request_id)
    except ApiError as e:
        return jsonify({"success": False, "error": e.message or "Failed to load pickup QR code"}), e.status_code or 502

    qr_data = data.get("qrCodeData")
    if not qr_data:
        return jsonify({"success": False, "error": "QR code is only available for approved requests"}), 404

    try:
        png = render_pickup_qr(qr_data, label=data.get("confirmationCode"))
    except Exception as e:
        current_app.logger.error(f"Failed to render pickup QR for {request_id}: {e}")
        return jsonify({"success": False, "error": "Failed to generate QR code"}), 500

    return send_file(io.BytesIO(png), mimetype="image/png", download_name=f"pickup_{request_id}.png")
