# =======================================================================================
# checkin_station/workers/camera_worker.py - Background Camera QR Decoder
# =======================================================================================
import logging
import os
import threading
from typing import Optional

from ..config import config
from ..services.decoder import DecodeCallback, DecoderAdapter, PresentationDebouncer
from ..utils.exceptions import CameraNotFoundError, CameraPermissionError, DecoderStartError

try:
    import cv2
except ImportError:
    cv2 = None

logger = logging.getLogger(__name__)

JOIN_TIMEOUT_SECONDS = 5.0
MAX_FAILED_GRABS = 30


class CameraDecoder(DecoderAdapter):
    """Decodes QR codes from a local camera in a background thread."""

    def __init__(self, camera_index: Optional[int] = None, fps: Optional[int] = None,
                 debounce_seconds: Optional[float] = None):
        super().__init__()
        self.camera_index = config.CAMERA_INDEX if camera_index is None else camera_index
        self.fps = fps or config.CAMERA_FPS
        self.debouncer = PresentationDebouncer(debounce_seconds)
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        # set while the worker thread is running the decode callback
        self._in_callback = threading.Event()

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    def start(self, on_decode: DecodeCallback) -> None:
        """Acquire the camera and start decoding; a previous worker is stopped first."""
        if cv2 is None:
            raise DecoderStartError("Failed to start scanner: opencv is not installed")

        with self._lock:
            if not self._stop_worker():
                raise DecoderStartError("Camera is still in use by a previous scanner")
            capture = self._open_capture()

            self.on_decode = on_decode
            self.debouncer.reset()
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(capture, self._stop_event),
                name="camera-decoder",
                daemon=True,
            )
            self._thread.start()

        logger.info("[camera] Decoder started on camera %s", self.camera_index)

    def stop(self) -> None:
        """
        Stop decoding and release the camera.

        While the worker is inside the decode callback (a check-in call, which has
        no client timeout by default) this only signals the stop and returns. The
        loop exits and releases the camera once the callback returns; a `start()`
        issued before then waits up to JOIN_TIMEOUT_SECONDS and records
        "Camera is still in use" if the callback is still running.
        """
        if self._thread is None:
            return
        if threading.current_thread() is self._thread or self._in_callback.is_set():
            self._stop_event.set()
            return

        with self._lock:
            if not self._stop_worker():
                logger.warning("[camera] Worker did not exit within %ss", JOIN_TIMEOUT_SECONDS)

    def _stop_worker(self) -> bool:
        """Signal and join the current worker; False if it is still holding the camera."""
        thread, stop_event = self._thread, self._stop_event
        if thread is None:
            return True

        stop_event.set()
        if thread.is_alive():
            thread.join(timeout=JOIN_TIMEOUT_SECONDS)
        if thread.is_alive():
            return False

        self._thread = None
        logger.info("[camera] Decoder stopped")
        return True

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------
    def _open_capture(self):
        device_path = f"/dev/video{self.camera_index}"
        if os.path.exists(device_path) and not os.access(device_path, os.R_OK):
            raise CameraPermissionError(
                "Camera permission denied. Please allow camera access to scan QR codes."
            )

        try:
            capture = cv2.VideoCapture(self.camera_index)
        except Exception as e:
            raise DecoderStartError(f"Failed to start scanner: {e}") from e

        if not capture.isOpened():
            capture.release()
            raise CameraNotFoundError("No camera found. Please connect a camera device.")
        return capture

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_loop(self, capture, stop_event: threading.Event):
        detector = cv2.QRCodeDetector()
        interval = 1.0 / max(self.fps, 1)
        failed_grabs = 0

        try:
            while not stop_event.is_set():
                ok, frame = capture.read()
                if not ok:
                    failed_grabs += 1
                    if failed_grabs >= MAX_FAILED_GRABS:
                        self.error = "Camera disconnected. Please reconnect and try again."
                        logger.error("[camera] %s", self.error)
                        break
                    stop_event.wait(interval)
                    continue
                failed_grabs = 0

                try:
                    text, _points, _ = detector.detectAndDecode(frame)
                except cv2.error as e:
                    logger.debug("[camera] Decode error: %s", e)
                    text = ""

                payload = self.debouncer.feed(text or None)
                if payload:
                    self._emit(payload)

                stop_event.wait(interval)
        finally:
            capture.release()
            stop_event.set()

    def _emit(self, payload: str):
        logger.debug("[camera] Decoded: %s", payload)
        self._in_callback.set()
        try:
            self.on_decode(payload)
        except Exception:
            logger.exception("[camera] Decode handler failed")
        finally:
            self._in_callback.clear()
