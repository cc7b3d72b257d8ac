import sys
import os
import pytest
import numpy as np

# Make config.py and the package importable without an install
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pickup_station import create_app, db
from pickup_station.api_client import ApiError
from pickup_station.credentials import build_qr_payload

PICKUP_QR = build_qr_payload("req-1", "don-1", "QQ7X2M", timestamp=1700000000000)

COMPLETED_REQUEST = {
    "_id": "req-1",
    "status": "completed",
    "donation": {
        "_id": "don-1",
        "foodTitle": "Vegetable Biryani",
        "donor": {"_id": "user-9", "name": "Hotel Saffron"},
    },
}


# ==========================================
#  FAKES
# ==========================================

class FakeTrack:
    def __init__(self):
        self.state = "live"

    def stop(self):
        self.state = "ended"


class FakeCamera:
    """Frame source with media-stream style tracks."""

    def __init__(self, frames=None, error=None):
        self.frames = frames          # None = a frame on every snapshot
        self.error = error
        self.acquired = 0
        self.snapshots = 0
        self.facing = None
        self.tracks = []

    @property
    def live(self):
        return any(t.state == "live" for t in self.tracks)

    def acquire(self, facing="environment"):
        if self.error is not None:
            raise self.error
        self.acquired += 1
        self.facing = facing
        self.tracks = [FakeTrack(), FakeTrack()]

    def snapshot(self):
        self.snapshots += 1
        if not self.live:
            return None
        if self.frames is None:
            return np.zeros((480, 640, 3), dtype=np.uint8)
        return self.frames.pop(0) if self.frames else None

    def release(self):
        for track in self.tracks:
            track.stop()


class FakeDecoder:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    def __call__(self, pixels, width, height):
        self.calls.append((width, height))
        if self.error is not None:
            raise self.error
        return self.payload


class FakeClient:
    """Stands in for MarketplaceClient; records every call."""

    def __init__(self):
        self.calls = []
        self.response = {"message": "Food pickup confirmed! Thank you.", "data": COMPLETED_REQUEST}
        self.error = None
        self.requests = []
        self.qr_data = {"qrCodeData": PICKUP_QR, "confirmationCode": "QQ7X2M"}

    def _reply(self, name, *args):
        self.calls.append((name,) + args)
        if self.error is not None:
            raise self.error
        return self.response

    def complete_by_code(self, code):
        return self._reply("complete_by_code", code)

    def complete_by_qr(self, qr_data):
        return self._reply("complete_by_qr", qr_data)

    def complete_request(self, request_id, code):
        return self._reply("complete_request", request_id, code)

    def my_requests(self):
        self.calls.append(("my_requests",))
        if self.error is not None:
            raise self.error
        return self.requests

    def pickup_qr_data(self, request_id):
        self.calls.append(("pickup_qr_data", request_id))
        if self.error is not None:
            raise self.error
        return self.qr_data

    def submit_rating(self, request_id, rating, feedback=""):
        return self._reply("submit_rating", request_id, rating, feedback)


def rejection(message="Invalid confirmation code", status=400):
    return ApiError(message, status)


# ==========================================
#  FIXTURES
# ==========================================

@pytest.fixture
def fake_camera():
    return FakeCamera()


@pytest.fixture
def fake_decoder():
    return FakeDecoder(payload=PICKUP_QR)


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def app(fake_camera, fake_decoder, fake_client):
    """Create and configure a new app instance for each test."""
    app = create_app(
        config_overrides={
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SCAN_RUN_SAMPLER": False,
        },
        camera=fake_camera,
        decoder=fake_decoder,
        client=fake_client,
    )

    with app.app_context():
        db.create_all()
        yield app
        app.extensions["pickup_station"].shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def station(app):
    return app.extensions["pickup_station"]
