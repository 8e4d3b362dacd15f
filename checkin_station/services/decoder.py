# =======================================================================================
# checkin_station/services/decoder.py - QR Decoder Adapter Contract
# =======================================================================================
import logging
import threading
import time
from typing import Callable, Optional

from ..config import config
from ..utils.exceptions import ScannerError

logger = logging.getLogger(__name__)

DecodeCallback = Callable[[str], None]


class PresentationDebouncer:
    """
    Collapses repeated decodes of one physical code into a single emission.
    The same text is suppressed until it has been out of view for `window` seconds.
    """

    def __init__(self, window: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.window = config.SCAN_DEBOUNCE_SECONDS if window is None else window
        self._clock = clock
        self._last_text: Optional[str] = None
        self._last_seen = 0.0

    def feed(self, text: Optional[str]) -> Optional[str]:
        """Feed one frame's decode (None when nothing was found); return text to emit."""
        now = self._clock()
        expired = now - self._last_seen > self.window

        if not text:
            if self._last_text is not None and expired:
                self._last_text = None
            return None

        if text == self._last_text and not expired:
            self._last_seen = now
            return None

        self._last_text = text
        self._last_seen = now
        return text

    def reset(self):
        self._last_text = None
        self._last_seen = 0.0


class DecoderAdapter:
    """
    Contract between a decoding engine and the check-in page:
    `start(on_decode)`, `stop()`, and an `on_decode(text)` callback fired once per code.
    """

    def __init__(self):
        self.on_decode: Optional[DecodeCallback] = None
        self.error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        raise NotImplementedError

    def start(self, on_decode: DecodeCallback) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def set_active(self, active: bool, on_decode: Optional[DecodeCallback] = None) -> bool:
        """
        Follow an externally supplied active flag. Start failures are recorded in
        `error` instead of propagating; returns whether the decoder is running.
        """
        if not active:
            if self.is_running:
                self.stop()
            return False

        if self.is_running:
            if on_decode is not None:
                self.on_decode = on_decode
            return True

        callback = on_decode or self.on_decode
        try:
            self.start(callback)
            self.error = None
        except ScannerError as e:
            self.error = str(e)
            logger.warning("[decoder] Start failed: %s", e)
            return False
        return True


class ManualDecoder(DecoderAdapter):
    """Decoder fed by typed or pasted payloads (keyboard wedge, terminal)."""

    def __init__(self):
        super().__init__()
        self._running = False
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, on_decode: DecodeCallback) -> None:
        with self._lock:
            self.on_decode = on_decode
            self._running = True

    def stop(self) -> None:
        with self._lock:
            self._running = False

    def submit(self, text: str) -> bool:
        """Deliver a payload; ignored (False) while the decoder is stopped."""
        text = (text or "").strip()
        with self._lock:
            callback = self.on_decode if self._running else None
        if not text or callback is None:
            return False
        callback(text)
        return True
