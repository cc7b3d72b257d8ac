import io
import logging

import cv2
import numpy as np
from PIL import Image

from pickup_station.libzbar_preload import preload_libzbar

logger = logging.getLogger(__name__)

BACKEND_ZBAR = "zbar"
BACKEND_OPENCV = "opencv"


class QRDecoder:
    """
    Frame -> decoded QR text, or None.

    OpenCV's QR detector runs first; pyzbar (when loaded) is the fallback.
    Call it as decoder(pixels, width, height) where pixels is a numpy frame
    or a flat RGBA buffer of width * height * 4 bytes.
    """

    def __init__(self, zbar_decode=None):
        self._zbar_decode = zbar_decode
        self._detector = cv2.QRCodeDetector()

    @property
    def backend(self):
        return BACKEND_ZBAR if self._zbar_decode is not None else BACKEND_OPENCV

    def __call__(self, pixels, width, height):
        gray = to_grayscale(pixels, width, height)

        try:
            text, points, _ = self._detector.detectAndDecode(gray)
        except cv2.error as e:
            logger.debug(f"OpenCV QR detector failed: {e}")
            text = ""
        if text:
            return text

        if self._zbar_decode is None:
            return None

        from pyzbar.pyzbar import ZBarSymbol
        for symbol in self._zbar_decode(gray, symbols=[ZBarSymbol.QRCODE]):
            data = symbol.data.decode("utf-8", errors="replace")
            if data:
                return data
        return None


def to_grayscale(pixels, width, height):
    frame = np.asarray(pixels, dtype=np.uint8)

    # Canvas-style flat RGBA buffer
    if frame.ndim == 1:
        if frame.size != width * height * 4:
            raise ValueError(
                f"Pixel buffer has {frame.size} bytes, expected {width * height * 4}"
            )
        frame = frame.reshape((height, width, 4))
        return cv2.cvtColor(frame, cv2.COLOR_RGBA2GRAY)

    if frame.ndim == 2:
        return frame
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def load_decoder(backend=BACKEND_ZBAR):
    """Build the process-wide decoder. Called once from create_app()."""
    if backend == BACKEND_OPENCV:
        logger.info("QR decoding with OpenCV only")
        return QRDecoder()

    if backend != BACKEND_ZBAR:
        raise ValueError(f"Unknown QR decoder backend: {backend}")

    preload_libzbar()
    # Only import after lib is loaded
    from pyzbar.pyzbar import decode
    logger.info("QR decoding with OpenCV + pyzbar")
    return QRDecoder(zbar_decode=decode)


def decode_image_bytes(decoder, data):
    """Decode a still image (PNG/JPEG bytes) posted by a browser client."""
    pil_img = Image.open(io.BytesIO(data))
    image = cv2.cvtColor(np.array(pil_img.convert("RGB")), cv2.COLOR_RGB2BGR)

    # Resize if too large (max dimension = 1280 px)
    h, w = image.shape[:2]
    if max(h, w) > 1280:
        scale = 1280 / max(h, w)
        image = cv2.resize(image, (int(w * scale), int(h * scale)))
        h, w = image.shape[:2]

    return decoder(image, w, h)
