from . import db
from datetime import datetime
from pickup_station.constants.status import OutcomeKind


# ============================
# PICKUP ATTEMPT MODEL
# ============================
class PickupAttempt(db.Model):
    """Local record of every credential this station handled."""

    __tablename__ = "pickup_attempts"

    id = db.Column(db.Integer, primary_key=True)
    credential_kind = db.Column(db.String(10), nullable=False)   # code / qr
    outcome_kind = db.Column(db.String(20), nullable=False, default=OutcomeKind.SUCCESS)
    succeeded = db.Column(db.Boolean, default=False, nullable=False)
    message = db.Column(db.String(255))

    # Filled from the completed request on success
    request_id = db.Column(db.String(64), index=True)
    food_title = db.Column(db.String(255))
    donor_name = db.Column(db.String(255))

    created_on = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "credential_kind": self.credential_kind,
            "outcome_kind": self.outcome_kind,
            "succeeded": self.succeeded,
            "message": self.message,
            "request_id": self.request_id,
            "food_title": self.food_title,
            "donor_name": self.donor_name,
            "created_on": self.created_on.strftime("%Y-%m-%d %H:%M:%S") if self.created_on else None,
        }

    def __repr__(self):
        return (
            f"<PickupAttempt ID={self.id} Kind={self.credential_kind} Outcome={self.outcome_kind}>"
        )
