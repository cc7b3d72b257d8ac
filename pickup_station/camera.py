# pickup_station/camera.py

import os
import logging

import cv2

from pickup_station.constants.status import CameraErrorKind

logger = logging.getLogger(__name__)

FACING_ENVIRONMENT = "environment"
FACING_USER = "user"


class CameraError(Exception):
    def __init__(self, kind, message=None):
        self.kind = kind
        self.message = message or CameraErrorKind.MESSAGES.get(
            kind, CameraErrorKind.MESSAGES[CameraErrorKind.START_FAILED]
        )
        super().__init__(self.message)


class CameraSource:
    """
    Video capture capability used by the capture engine.

    acquire() opens the device for the given facing hint, snapshot() returns
    the current frame (H x W x C numpy array at native resolution) or None
    while not enough data is buffered, release() gives the device back.
    """

    def acquire(self, facing=FACING_ENVIRONMENT):
        raise NotImplementedError

    def snapshot(self):
        raise NotImplementedError

    def release(self):
        raise NotImplementedError


class OpenCVCameraSource(CameraSource):
    """Local webcam through cv2.VideoCapture."""

    device_path = "/dev/video{}"

    def __init__(self, device_indexes=None, width=1280, height=720):
        self.device_indexes = device_indexes or {FACING_ENVIRONMENT: 0, FACING_USER: 0}
        self.width = width
        self.height = height
        self._capture = None

    def acquire(self, facing=FACING_ENVIRONMENT):
        index = self.device_indexes.get(facing, self.device_indexes.get(FACING_ENVIRONMENT, 0))
        try:
            capture = cv2.VideoCapture(index)
        except cv2.error as e:
            logger.warning(f"Camera {index} failed to open: {e}")
            raise CameraError(CameraErrorKind.START_FAILED)

        if not capture.isOpened():
            capture.release()
            raise CameraError(self._classify_failure(index))

        # Ideal size only; the driver may pick the nearest supported mode
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self._capture = capture
        logger.info(f"Camera {index} acquired ({facing})")

    def snapshot(self):
        capture = self._capture
        if capture is None:
            return None
        ok, frame = capture.read()
        if not ok or frame is None:
            return None
        return frame

    def release(self):
        capture, self._capture = self._capture, None
        if capture is not None:
            capture.release()
            logger.info("Camera released")

    def _classify_failure(self, index):
        if not isinstance(index, int) or os.name != "posix":
            return CameraErrorKind.START_FAILED

        device = self.device_path.format(index)
        if not os.path.exists(device):
            return CameraErrorKind.NO_CAMERA
        if not os.access(device, os.R_OK):
            return CameraErrorKind.PERMISSION_DENIED
        return CameraErrorKind.START_FAILED
