# =======================================================================================
# checkin_station/services/orchestrator.py - Check-in State Machine
# =======================================================================================
import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from ..config import config
from ..models.enums import CheckInType, Outcome, ScanState
from ..models.schemas import Event, ScanResult, ScanStats
from ..utils.exceptions import NotAuthenticatedError
from .api_client import CHECKIN_FAILED_MESSAGE
from .session_context import SessionContext

logger = logging.getLogger(__name__)

StateListener = Callable[[ScanState], None]


class CheckInOrchestrator:
    """
    Owns the scan state of one check-in page:

        idle --scan--> processing --response--> result --reset--> idle

    Scans outside `idle` are ignored. Counters and history live for the current
    operator session only.
    """

    def __init__(
        self,
        client,
        session: SessionContext,
        check_in_type: CheckInType,
        history_limit: Optional[int] = None,
        listener: Optional[StateListener] = None,
    ):
        self.client = client
        self.session = session
        self.check_in_type = check_in_type
        self.listener = listener

        self._lock = threading.Lock()
        self._state = ScanState.IDLE
        self._result: Optional[ScanResult] = None
        self._stats = ScanStats()
        self._history: Deque[ScanResult] = deque(maxlen=history_limit or config.HISTORY_LIMIT)
        self._event: Optional[Event] = None
        # bumped on every session reset; stale responses are dropped
        self._generation = 0
        self._closed = False

    # ----------------------------------------------------------------------
    # Read side
    # ----------------------------------------------------------------------
    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def result(self) -> Optional[ScanResult]:
        return self._result

    @property
    def stats(self) -> ScanStats:
        with self._lock:
            return self._stats.model_copy()

    @property
    def history(self) -> List[ScanResult]:
        with self._lock:
            return list(self._history)

    @property
    def event(self) -> Optional[Event]:
        return self._event

    @property
    def needs_event(self) -> bool:
        return self.check_in_type == CheckInType.SESSION and self._event is None

    # ----------------------------------------------------------------------
    # Transitions
    # ----------------------------------------------------------------------
    def _notify(self, state: ScanState):
        if self.listener is None:
            return
        try:
            self.listener(state)
        except Exception:
            logger.exception("[checkin] State listener failed")

    def handle_scan(self, qr_code: str) -> Optional[ScanResult]:
        """
        Process one decoded payload. Returns the result, or None when the scan was
        ignored (busy, no event selected, closed). Raises NotAuthenticatedError when
        no credential is stored; nothing is sent in that case.
        """
        with self._lock:
            if self._closed or self._state != ScanState.IDLE:
                logger.debug("[checkin] Ignoring scan while %s", self._state.value)
                return None

            if self.needs_event:
                logger.info("[checkin] Session scan without a selected event ignored")
                return None

            if not self.session.token:
                raise NotAuthenticatedError("Please log in to check attendees in")

            self._state = ScanState.PROCESSING
            self._result = None
            self._stats.total += 1
            generation = self._generation
            event_id = self._event.id if self._event else None

        self._notify(ScanState.PROCESSING)

        try:
            response = self.client.perform_check_in(qr_code, self.check_in_type, event_id)
            if response.status_code == 401:
                self.session.invalidate()
            result = ScanResult.from_response(response, self.check_in_type)
            if not result.message and result.outcome == Outcome.FAILED:
                result.message = CHECKIN_FAILED_MESSAGE
        except Exception as e:
            logger.error(
                "[checkin] %s check-in failed for %r: %s", self.check_in_type.value, qr_code, e
            )
            result = ScanResult.failed(CHECKIN_FAILED_MESSAGE, self.check_in_type)

        with self._lock:
            if self._closed or generation != self._generation:
                logger.info("[checkin] Dropping stale check-in response")
                return None

            self._stats.record(result.outcome)
            self._history.appendleft(result)
            self._result = result
            self._state = ScanState.RESULT

        logger.info("[checkin] %s -> %s: %s", self.check_in_type.value, result.outcome.value, result.message)
        self._notify(ScanState.RESULT)
        return result

    def reset(self) -> bool:
        """Operator's "scan next": result -> idle. No-op in any other state."""
        with self._lock:
            if self._state != ScanState.RESULT:
                return False
            self._state = ScanState.IDLE
            self._result = None
        self._notify(ScanState.IDLE)
        return True

    def start_session(self, event: Optional[Event]):
        """Switch the selected event; counters, history and result start over."""
        with self._lock:
            self._event = event
            self._generation += 1
            self._stats = ScanStats()
            self._history.clear()
            self._result = None
            self._state = ScanState.IDLE
        self._notify(ScanState.IDLE)

    def close(self):
        """Page unmounted: late responses are no longer applied."""
        with self._lock:
            self._closed = True
