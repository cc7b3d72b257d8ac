from flask import Blueprint, request, jsonify, send_file
from sqlalchemy import func
from datetime import datetime, timedelta
from openpyxl import Workbook
import io

from pickup_station.models import db, PickupAttempt
from pickup_station.constants.status import CredentialKind


bp = Blueprint("api", __name__, url_prefix="/api/insights")


def _filtered_attempts():
    query = PickupAttempt.query

    days = request.args.get("days", type=int)
    kind = request.args.get("kind")

    if days:
        query = query.filter(PickupAttempt.created_on >= datetime.utcnow() - timedelta(days=days))
    if kind in (CredentialKind.CODE, CredentialKind.QR):
        query = query.filter(PickupAttempt.credential_kind == kind)
    return query


@bp.route("/dashboard")
def dashboard_insights():
    attempts = _filtered_attempts().order_by(PickupAttempt.created_on.desc()).all()

    total = len(attempts)
    confirmed = sum(1 for a in attempts if a.succeeded)

    by_kind = {}
    by_outcome = {}
    for a in attempts:
        by_kind[a.credential_kind] = by_kind.get(a.credential_kind, 0) + 1
        by_outcome[a.outcome_kind] = by_outcome.get(a.outcome_kind, 0) + 1

    top_donors = (
        db.session.query(PickupAttempt.donor_name, func.count(PickupAttempt.id))
        .filter(PickupAttempt.succeeded.is_(True), PickupAttempt.donor_name.isnot(None))
        .group_by(PickupAttempt.donor_name)
        .order_by(func.count(PickupAttempt.id).desc())
        .limit(5)
        .all()
    )
    return jsonify({
        "success": True,
        "totalAttempts": total,
        "confirmedPickups": confirmed,
        "failedAttempts": total - confirmed,
        "credentialKinds": list(by_kind.keys()),
        "credentialCounts": list(by_kind.values()),
        "outcomes": list(by_outcome.keys()),
        "outcomeCounts": list(by_outcome.values()),
        "topDonors": [{"name": name, "pickups": count} for name, count in top_donors],
        "recent": [a.to_dict() for a in attempts[:10]],
    })


@bp.route("/export")
def export_attempts():
    attempts = _filtered_attempts().order_by(PickupAttempt.created_on.asc()).all()

    wb = Workbook()
    ws = wb.active
    ws.title = "Pickup Attempts"

    # Add summary header
    ws["A1"] = "Export Summary"
    ws["A2"] = f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
    ws["A3"] = f"Credential: {request.args.get('kind') or 'All'}"
    ws["A4"] = f"Last days: {request.args.get('days') or 'All'}"
    ws["A6"] = "Attempts:"

    headers = [
        "Created Date Time",
        "Credential",
        "Outcome",
        "Confirmed",
        "Request ID",
        "Food",
        "Donor",
        "Message",
    ]
    ws.append([])
    ws.append(headers)

    for a in attempts:
        ws.append([
            a.created_on.strftime("%Y-%m-%d %H:%M:%S") if a.created_on else "",
            a.credential_kind or "",
            a.outcome_kind or "",
            "Yes" if a.succeeded else "No",
            a.request_id or "",
            a.food_title or "",
            a.donor_name or "",
            a.message or "",
        ])

    # Auto-width
    for col in ws.columns:
        lengths = [len(str(c.value)) for c in col if c.value]
        if lengths:
            ws.column_dimensions[col[0].column_letter].width = max(lengths) + 2

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)

    filename = f"Pickup_Attempts_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"

    return send_file(
        output,
        as_attachment=True,
        download_name=filename,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
