"""
QR capture engine.

Turns a live camera feed into zero or one decoded payloads. Frames are
sampled on a fixed interval; the first successful decode stops the session
(camera released, sampler stopped) before the decoded text is emitted, so a
session never produces more than one event.
"""
import logging
import threading

from pickup_station.camera import FACING_ENVIRONMENT

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1


class CaptureSession:
    """State of one active scan. Owns the camera until stopped."""

    def __init__(self, camera):
        self.camera = camera
        self.stopped = threading.Event()
        self.sampler = None
        self.samples = 0
        self.last_error = None

    def close(self):
        """Stop sampling and release the camera. Safe to call repeatedly."""
        if self.stopped.is_set():
            return
        self.stopped.set()
        try:
            self.camera.release()
        except Exception as e:
            self.last_error = e
            logger.error(f"Failed to release camera: {e}")


class CaptureEngine:
    def __init__(self, camera, decoder, on_decoded, interval=DEFAULT_INTERVAL, run_sampler=True):
        self.camera = camera
        self.decoder = decoder
        self.on_decoded = on_decoded
        self.interval = interval
        self.run_sampler = run_sampler

        self._lock = threading.RLock()
        self._session = None
        self._last_session = None

    @property
    def active(self):
        session = self._session
        return session is not None and not session.stopped.is_set()

    @property
    def last_error(self):
        session = self._session or self._last_session
        return session.last_error if session else None

    def start_capture(self, facing=FACING_ENVIRONMENT):
        """
        Acquire the camera and arm the sampler.

        Any session still running is stopped first; the camera belongs to one
        session at a time. CameraError from acquire() propagates unchanged.
        """
        with self._lock:
            self._stop_locked()

            self.camera.acquire(facing)
            session = CaptureSession(self.camera)
            self._session = session

            if self.run_sampler:
                session.sampler = threading.Thread(
                    target=self._run, args=(session,), name="qr-sampler", daemon=True
                )
                session.sampler.start()

        logger.info(f"Capture started ({facing}, every {int(self.interval * 1000)} ms)")
        return session

    def stop_capture(self):
        """Release the camera and stop sampling. Idempotent."""
        with self._lock:
            session = self._stop_locked()

        if session is not None and session.sampler is not None:
            if session.sampler is not threading.current_thread():
                session.sampler.join(timeout=max(self.interval * 5, 1.0))

    def tick(self):
        """Sample one frame of the current session. Returns decoded text or None."""
        with self._lock:
            session = self._session
            if session is None:
                return None
            text = self._sample_locked(session)

        if text is not None:
            self.on_decoded(text)
        return text

    def _run(self, session):
        while not session.stopped.wait(self.interval):
            with self._lock:
                if session is not self._session:
                    return
                text = self._sample_locked(session)
            if text is not None:
                self.on_decoded(text)
                return

    def _sample_locked(self, session):
        if session.stopped.is_set():
            return None

        try:
            frame = session.camera.snapshot()
        except Exception as e:
            # A bad read must not kill the sampler while the camera is held
            session.last_error = e
            logger.warning(f"Camera read failed: {e}")
            return None
        if frame is None:
            # Not enough data buffered yet
            return None

        session.samples += 1
        height, width = frame.shape[:2]
        try:
            text = self.decoder(frame, width, height)
        except Exception as e:
            session.last_error = e
            logger.warning(f"QR decode failed on frame {session.samples}: {e}")
            return None

        if not text:
            return None

        self._stop_locked()
        logger.info(f"QR payload decoded after {session.samples} frame(s)")
        return text

    def _stop_locked(self):
        session, self._session = self._session, None
        if session is None:
            return None
        session.close()
        self._last_session = session
        return session
