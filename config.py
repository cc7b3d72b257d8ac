import os


def _float_or_none(value):
    return float(value) if value not in (None, "") else None


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "devkey")

    database_url = os.environ.get("DATABASE_URL")

    # Heroku uses old-style 'postgres://' URLs, fix them for SQLAlchemy
    if database_url and database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    SQLALCHEMY_DATABASE_URI = database_url or "sqlite:///pickups.db"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Marketplace API
    PICKUP_API_URL = os.environ.get("PICKUP_API_URL", "http://localhost:5000/api")
    PICKUP_API_TOKEN = os.environ.get("PICKUP_API_TOKEN")
    # Seconds; unset waits on the transport defaults
    PICKUP_API_TIMEOUT = _float_or_none(os.environ.get("PICKUP_API_TIMEOUT"))

    # Camera / scanning
    CAMERA_ENABLED = os.environ.get("CAMERA_ENABLED", "true").lower() in ("1", "true", "yes")
    CAMERA_INDEX_ENVIRONMENT = int(os.environ.get("CAMERA_INDEX_ENVIRONMENT", 0))
    CAMERA_INDEX_USER = int(os.environ.get("CAMERA_INDEX_USER", 0))
    CAMERA_WIDTH = int(os.environ.get("CAMERA_WIDTH", 1280))
    CAMERA_HEIGHT = int(os.environ.get("CAMERA_HEIGHT", 720))
    SCAN_INTERVAL_MS = int(os.environ.get("SCAN_INTERVAL_MS", 100))
    QR_DECODER_BACKEND = os.environ.get("QR_DECODER_BACKEND", "zbar")
    # Tests turn this off and drive CaptureEngine.tick() by hand
    SCAN_RUN_SAMPLER = True

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
