# pickup_station/libzbar_preload.py

import os
import ctypes
import logging

HEROKU_ZBAR_DIR = "/app/.apt/usr/lib/x86_64-linux-gnu"
HEROKU_ZBAR_PATH = f"{HEROKU_ZBAR_DIR}/libzbar.so.0"

_preloaded = False


def preload_libzbar():
    """
    Make libzbar loadable before pyzbar is imported.

    On Heroku the apt buildpack installs it outside the default search
    path, so it is loaded by absolute path and pyzbar's loader is pointed
    at it. Runs once per process.
    """
    global _preloaded
    if _preloaded:
        return
    _preloaded = True

    if not os.path.exists(HEROKU_ZBAR_PATH):
        logging.info("Local: assuming libzbar is available on the system")
        return

    os.environ["LD_LIBRARY_PATH"] = f"{HEROKU_ZBAR_DIR}:/app/.apt/usr/lib"
    try:
        library = ctypes.cdll.LoadLibrary(HEROKU_ZBAR_PATH)
    except OSError as e:
        logging.warning(f"Failed to load libzbar on Heroku: {e}")
        return

    from pyzbar import zbar_library
    zbar_library.load = lambda: (library, [])
    logging.info("✅ Heroku: libzbar loaded and pyzbar loader overridden")
