"""
Pickup station: one verification UI context.

Holds the flow state machine, the capture engine and the coordinator, and
keeps at most one credential submission in flight. Network calls run
outside the station lock; the `verifying` flag blocks every other action
until they come back.
"""
import logging
import threading

from pickup_station.camera import FACING_ENVIRONMENT, CameraError
from pickup_station.capture import DEFAULT_INTERVAL, CaptureEngine
from pickup_station.pickup_flow import FlowEvent, InvalidTransition, PickupFlow, PickupMode
from pickup_station.qr_decoder import decode_image_bytes

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class StationBusy(Exception):
    def __init__(self, message="A pickup verification is already in progress."):
        super().__init__(message)
        self.message = message


class PickupStation:
    def __init__(self, coordinator, decoder, camera=None, interval=DEFAULT_INTERVAL, run_sampler=True):
        self.coordinator = coordinator
        self.decoder = decoder
        self.flow = PickupFlow()
        # Without a local camera the browser posts snapshots instead
        self.engine = None
        if camera is not None:
            self.engine = CaptureEngine(
                camera, decoder, self.handle_scan, interval=interval, run_sampler=run_sampler
            )

        self.on_verified = []
        self.on_attempt = []
        self._lock = threading.RLock()

    @property
    def scanning(self):
        return self.engine is not None and self.engine.active

    def state(self):
        with self._lock:
            state = self.flow.to_dict()
        state["scanning"] = self.scanning
        return state

    # --- mode changes ---

    def choose_code(self):
        return self._apply(FlowEvent.CHOOSE_CODE)

    def back(self):
        return self._apply(FlowEvent.BACK)

    def enter_code(self, text):
        return self._apply(FlowEvent.EDIT_CODE, code=text)

    def reset(self):
        return self._apply(FlowEvent.RESET)

    def start_scan(self, facing=FACING_ENVIRONMENT):
        with self._lock:
            self._ensure_idle()
            if self.flow.mode == PickupMode.CODE:
                self.flow.apply(FlowEvent.SWITCH_TO_SCAN)
            else:
                self.flow.apply(FlowEvent.CHOOSE_SCAN)

            if self.engine is not None:
                try:
                    self.engine.start_capture(facing)
                except CameraError as e:
                    logger.warning(f"Camera unavailable ({e.kind}): {e.message}")
                    self.flow.apply(FlowEvent.SCAN_FAILED, message=e.message)
        return self.state()

    def close_scan(self):
        # Camera goes first, whatever state the flow is in
        self.shutdown()
        return self._apply(FlowEvent.CLOSE_SCAN)

    def shutdown(self):
        if self.engine is not None:
            self.engine.stop_capture()

    # --- submissions ---

    def submit_code(self, raw_code=None):
        return self._submit_code(self.coordinator.submit_code, raw_code)

    def submit_code_for_request(self, request_id, raw_code=None):
        return self._submit_code(
            lambda code: self.coordinator.submit_code_for_request(request_id, code), raw_code
        )

    def handle_scan(self, text):
        """Decoded QR text from the capture engine or a posted snapshot."""
        with self._lock:
            if self.flow.mode != PickupMode.SCAN or self.flow.verifying:
                logger.info(f"Ignoring decoded QR in {self.flow.mode.value} mode")
                return None
            self.flow.verifying = True

        outcome = None
        try:
            outcome = self.coordinator.submit_qr(text)
        finally:
            with self._lock:
                self.flow.verifying = False
                if outcome is None:
                    self.flow.apply(FlowEvent.SCAN_FAILED, message="Verification failed")
                elif outcome.ok:
                    self.flow.apply(FlowEvent.VERIFIED, completed_request=outcome.data)
                else:
                    # Forced fallback to manual entry, message kept on screen
                    self.flow.apply(FlowEvent.SCAN_FAILED, message=outcome.message)

        self._notify(outcome)
        return outcome

    def handle_snapshot(self, image_bytes):
        with self._lock:
            self._ensure_idle()
            if self.flow.mode != PickupMode.SCAN:
                raise InvalidTransition(
                    self.flow.mode, FlowEvent.SCAN_FAILED, "Start a QR scan before sending frames."
                )

        text = decode_image_bytes(self.decoder, image_bytes)
        if not text:
            return None

        # One decode ends the scan session, as with the local camera
        self.shutdown()
        return self.handle_scan(text)

    # --- rating prompt ---

    def rate(self, rating, feedback=""):
        try:
            rating = int(rating)
        except (TypeError, ValueError):
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        with self._lock:
            self._ensure_idle()
            prompt = self.flow.rating_prompt()
            if prompt is None:
                raise InvalidTransition(
                    self.flow.mode, FlowEvent.RESET, "There is no completed pickup to rate."
                )
            self.flow.verifying = True

        rated = False
        try:
            self.coordinator.client.submit_rating(prompt["request_id"], rating, feedback)
            rated = True
        finally:
            with self._lock:
                self.flow.verifying = False
                if rated and self.flow.mode == PickupMode.SUCCESS:
                    self.flow.apply(FlowEvent.RESET)

        logger.info(f"Rated {prompt['target_name']} {rating}/{MAX_RATING}")
        return self.state()

    # --- internals ---

    def _submit_code(self, submit, raw_code):
        with self._lock:
            self._ensure_idle()
            if self.flow.mode != PickupMode.CODE:
                raise InvalidTransition(
                    self.flow.mode, FlowEvent.CODE_FAILED, "Switch to code entry before submitting a code."
                )
            code = self.flow.code if raw_code is None else raw_code
            self.flow.verifying = True

        outcome = None
        try:
            outcome = submit(code)
        finally:
            with self._lock:
                self.flow.verifying = False
                if outcome is not None:
                    if outcome.ok:
                        self.flow.apply(FlowEvent.VERIFIED, completed_request=outcome.data)
                    else:
                        self.flow.apply(FlowEvent.CODE_FAILED, message=outcome.message)

        self._notify(outcome)
        return outcome

    def _apply(self, event, **kwargs):
        with self._lock:
            self._ensure_idle()
            self.flow.apply(event, **kwargs)
        return self.state()

    def _ensure_idle(self):
        if self.flow.verifying:
            raise StationBusy()

    def _notify(self, outcome):
        if outcome is None:
            return
        with self._lock:
            prompt = self.flow.rating_prompt() if outcome.ok else None

        for listener in self.on_attempt:
            self._call(listener, outcome)
        if outcome.ok:
            for listener in self.on_verified:
                self._call(listener, outcome, prompt)

    @staticmethod
    def _call(listener, *args):
        try:
            listener(*args)
        except Exception as e:
            logger.error(f"Pickup listener {listener!r} failed: {e}")
