import atexit
import logging
import weakref

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()

# Every live station; the camera must never outlive the process
_stations = weakref.WeakSet()


@atexit.register
def shutdown_stations():
    for station in list(_stations):
        station.shutdown()


def create_app(config_overrides=None, camera=None, decoder=None, client=None):
    """
    Build the station app. camera, decoder and client default to the real
    OpenCV camera, the configured QR decoder and the marketplace API client;
    tests pass fakes.
    """
    app = Flask(__name__)
    app.config.from_object("config.Config")
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    migrate.init_app(app, db)

    from .models import PickupAttempt  # noqa: F401  registers the table
    from .station import PickupStation
    from .coordinator import VerificationCoordinator
    from .utils.attempt_log import log_attempt

    # Decoder is set up once here, never lazily per scan
    if decoder is None:
        from .qr_decoder import load_decoder
        decoder = load_decoder(app.config["QR_DECODER_BACKEND"])

    if client is None:
        from .api_client import MarketplaceClient
        client = MarketplaceClient(
            app.config["PICKUP_API_URL"],
            token=app.config.get("PICKUP_API_TOKEN"),
            timeout=app.config.get("PICKUP_API_TIMEOUT"),
        )

    if camera is None and app.config["CAMERA_ENABLED"]:
        from .camera import OpenCVCameraSource, FACING_ENVIRONMENT, FACING_USER
        camera = OpenCVCameraSource(
            device_indexes={
                FACING_ENVIRONMENT: app.config["CAMERA_INDEX_ENVIRONMENT"],
                FACING_USER: app.config["CAMERA_INDEX_USER"],
            },
            width=app.config["CAMERA_WIDTH"],
            height=app.config["CAMERA_HEIGHT"],
        )

    station = PickupStation(
        VerificationCoordinator(client),
        decoder,
        camera=camera,
        interval=app.config["SCAN_INTERVAL_MS"] / 1000.0,
        run_sampler=app.config["SCAN_RUN_SAMPLER"],
    )
    station.on_attempt.append(lambda outcome: log_attempt(app, outcome))
    app.extensions["pickup_station"] = station

    _stations.add(station)

    # Register blueprints
    from .routes import pickup, donor, api
    app.register_blueprint(pickup.bp)
    app.register_blueprint(donor.bp)
    app.register_blueprint(api.bp)

    with app.app_context():
        db.create_all()

    return app
