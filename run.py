from pickup_station.libzbar_preload import preload_libzbar
preload_libzbar()

from pickup_station import create_app
import os


app = create_app()

if __name__ == "__main__":
    # One station per process: the reloader would open the camera twice
    app.run(
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        debug=os.environ.get("FLASK_DEBUG", "false").lower() in ("1", "true"),
        use_reloader=False,
    )
