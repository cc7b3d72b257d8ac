from pickup_station.models import db, PickupAttempt


def log_attempt(app, outcome):
    """
    Persist a verification outcome. Runs on request threads and on the QR
    sampler thread, so it opens its own app context. Never raises.
    """
    with app.app_context():
        try:
            data = outcome.data if isinstance(outcome.data, dict) else {}
            donation = data.get("donation") if isinstance(data.get("donation"), dict) else {}
            donor = donation.get("donor") if isinstance(donation.get("donor"), dict) else {}

            request_id = data.get("_id") or data.get("requestId")

            attempt = PickupAttempt(
                credential_kind=outcome.credential_kind,
                outcome_kind=outcome.kind,
                succeeded=outcome.ok,
                message=(outcome.message or "")[:255],
                request_id=str(request_id) if request_id is not None else None,
                food_title=donation.get("foodTitle"),
                donor_name=donor.get("name"),
            )
            db.session.add(attempt)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            app.logger.error(f"Failed to log pickup attempt: {e}")  # Don't break verification
