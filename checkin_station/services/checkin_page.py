# =======================================================================================
# checkin_station/services/checkin_page.py - Building / Session Check-in Pages
# =======================================================================================
import logging
from typing import Optional

from ..models.enums import LOGIN_ROUTE, CheckInType, GateStatus, PageView, ScanState
from ..models.schemas import CheckInPageView, GateDecision, ScannerStatus, ScanResult
from ..utils.exceptions import CheckInStationError, NotAuthenticatedError
from .decoder import DecoderAdapter, ManualDecoder
from .event_selector import EventSelector
from .orchestrator import CheckInOrchestrator
from .presenter import present_result, present_stats
from .role_gate import RoleGate
from .session_context import SessionContext

logger = logging.getLogger(__name__)

_GATE_VIEWS = {
    GateStatus.LOGIN_REQUIRED: PageView.LOGIN_REQUIRED,
    GateStatus.ACCESS_DENIED: PageView.ACCESS_DENIED,
    GateStatus.OFFLINE: PageView.OFFLINE,
}


class CheckInPage:
    """
    One scanner screen: role gate, optional event selector, orchestrator and decoder.
    The decoder only runs while the orchestrator is idle on the scanning sub-view.
    """

    def __init__(
        self,
        check_in_type: CheckInType,
        session: SessionContext,
        client,
        decoder: Optional[DecoderAdapter] = None,
        gate: Optional[RoleGate] = None,
        history_limit: Optional[int] = None,
    ):
        self.check_in_type = check_in_type
        self.session = session
        self.client = client
        self.decoder = decoder or ManualDecoder()
        self.gate = gate or RoleGate()
        self.selector = EventSelector(client) if check_in_type == CheckInType.SESSION else None
        self.orchestrator = CheckInOrchestrator(
            client, session, check_in_type, history_limit, listener=self._on_state_change
        )
        self.decision: Optional[GateDecision] = None
        self.message: Optional[str] = None
        self.mounted = False

    # ----------------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------------
    def mount(self) -> CheckInPageView:
        """Run the role gate, load events for session check-in, start the scanner."""
        self.mounted = True
        self.message = None
        self.decision = self.gate.evaluate(self.session, self.check_in_type)

        if self.allowed and self.selector is not None:
            try:
                self.selector.load()
            except CheckInStationError as e:
                logger.error("[page] Failed to load events: %s", e)
                self.message = str(e)

        self._sync_scanner()
        return self.view()

    def unmount(self):
        self.mounted = False
        self.orchestrator.close()
        self.decoder.set_active(False)

    @property
    def allowed(self) -> bool:
        return self.decision is not None and self.decision.allowed

    # ----------------------------------------------------------------------
    # Scanner coupling
    # ----------------------------------------------------------------------
    def _scanner_should_run(self) -> bool:
        return (
            self.mounted
            and self.allowed
            and not self.orchestrator.needs_event
            and self.orchestrator.state == ScanState.IDLE
        )

    def _sync_scanner(self):
        self.decoder.set_active(self._scanner_should_run(), self._on_decode)

    def _on_state_change(self, state: ScanState):
        self._sync_scanner()

    def _on_decode(self, qr_code: str):
        self.scan(qr_code)

    def _require_login(self, message: str):
        self.decision = GateDecision(
            status=GateStatus.LOGIN_REQUIRED, redirect=LOGIN_ROUTE, message=message
        )
        self._sync_scanner()

    # ----------------------------------------------------------------------
    # Operator actions
    # ----------------------------------------------------------------------
    def scan(self, qr_code: str) -> Optional[ScanResult]:
        """Hand a decoded payload to the orchestrator; None when it was ignored."""
        if not self.session.token:
            self._require_login("Please log in")
            return None
        if not self.mounted or not self.allowed:
            return None

        try:
            return self.orchestrator.handle_scan(qr_code)
        except NotAuthenticatedError as e:
            self._require_login(str(e))
            return None

    def reset(self) -> CheckInPageView:
        """Scan next: clear the result and resume decoding."""
        self.orchestrator.reset()
        if not self.session.token:
            self._require_login("Session expired. Please log in again.")
        return self.view()

    def select_event(self, event_id: str) -> CheckInPageView:
        if self.selector is None or not self.allowed:
            return self.view()
        event = self.selector.select(event_id)
        logger.info("[page] Session check-in for %s", event.title)
        self.orchestrator.start_session(event)
        return self.view()

    def change_event(self) -> CheckInPageView:
        if self.selector is None:
            return self.view()
        self.selector.clear()
        self.orchestrator.start_session(None)
        return self.view()

    def retry_scanner(self) -> CheckInPageView:
        self.decoder.error = None
        self._sync_scanner()
        return self.view()

    # ----------------------------------------------------------------------
    # Rendering
    # ----------------------------------------------------------------------
    def _sub_view(self) -> PageView:
        if self.decision is None:
            return PageView.LOADING
        if not self.allowed:
            return _GATE_VIEWS[self.decision.status]
        if self.orchestrator.needs_event:
            return PageView.SELECT_EVENT
        return PageView.SCANNING

    def view(self) -> CheckInPageView:
        orchestrator = self.orchestrator
        stats = orchestrator.stats
        decision = self.decision

        return CheckInPageView(
            checkInType=self.check_in_type,
            view=self._sub_view(),
            state=orchestrator.state,
            redirect=decision.redirect if decision else None,
            message=self.message or (decision.message if decision else None),
            user=decision.profile if decision else None,
            events=self.selector.events if self.selector else [],
            selectedEvent=orchestrator.event,
            result=present_result(orchestrator.result, orchestrator.state == ScanState.PROCESSING),
            stats=present_stats(stats),
            counters=stats,
            history=orchestrator.history,
            scanner=ScannerStatus(
                active=self._scanner_should_run(),
                running=self.decoder.is_running,
                error=self.decoder.error,
                canRetry=self.decoder.error is not None,
            ),
        )
