"""
Check-in pages: gate, event selection and the decoder coupling.
"""
import pytest

from checkin_station.models.enums import CheckInType, Outcome, PageView, ScanState
from checkin_station.services.checkin_page import CheckInPage
from checkin_station.services.decoder import DecoderAdapter
from checkin_station.utils.exceptions import (
    BackendError, CameraPermissionError, EventNotFoundError, ServerOfflineError,
)
from conftest import make_profile


class FlakyDecoder(DecoderAdapter):
    """Fails to start until `fixed` is set."""

    def __init__(self):
        super().__init__()
        self.fixed = False
        self.running = False

    @property
    def is_running(self):
        return self.running

    def start(self, on_decode):
        if not self.fixed:
            raise CameraPermissionError("Camera permission denied")
        self.on_decode = on_decode
        self.running = True

    def stop(self):
        self.running = False


def building_page(session, backend, decoder):
    return CheckInPage(CheckInType.BUILDING, session, backend, decoder=decoder)


def session_page(session, backend, decoder):
    return CheckInPage(CheckInType.SESSION, session, backend, decoder=decoder)


def test_unmounted_page_is_loading(signed_in, backend, decoder):
    view = building_page(signed_in, backend, decoder).view()

    assert view.view == PageView.LOADING
    assert not decoder.is_running


def test_building_page_scans_and_pauses_decoder(signed_in, backend, decoder):
    page = building_page(signed_in, backend, decoder)

    view = page.mount()
    assert view.view == PageView.SCANNING
    assert view.scanner.running

    assert decoder.submit("QR-ALICE")

    view = page.view()
    assert view.state == ScanState.RESULT
    assert view.result.tone == "success"
    assert view.result.title == "Check-in Successful!"
    assert [tile.value for tile in view.stats] == [1, 1, 0, 0]
    assert not decoder.is_running

    # decoder is paused until the operator resets
    assert not decoder.submit("QR-BOB")
    assert len(backend.check_in_calls) == 1


def test_same_code_can_be_scanned_again_after_reset(signed_in, backend, decoder):
    page = building_page(signed_in, backend, decoder)
    page.mount()
    decoder.submit("QR-ALICE")

    view = page.reset()

    assert view.state == ScanState.IDLE
    assert view.result is None
    assert decoder.is_running
    decoder.submit("QR-ALICE")
    assert [call[0] for call in backend.check_in_calls] == ["QR-ALICE", "QR-ALICE"]


def test_login_required_page_never_calls_backend(session, backend, decoder):
    page = building_page(session, backend, decoder)

    view = page.mount()

    assert view.view == PageView.LOGIN_REQUIRED
    assert view.redirect == "/login"
    assert not decoder.is_running
    assert page.scan("QR-1") is None
    assert backend.check_in_calls == []


def test_logout_while_mounted_redirects_on_next_scan(signed_in, backend, decoder):
    page = building_page(signed_in, backend, decoder)
    page.mount()
    signed_in.invalidate()

    assert page.scan("QR-1") is None

    view = page.view()
    assert view.view == PageView.LOGIN_REQUIRED
    assert view.redirect == "/login"
    assert view.counters.total == 0
    assert backend.check_in_calls == []
    assert not decoder.is_running


def test_access_denied_page(signed_in, backend, decoder):
    view = session_page(signed_in, backend, decoder).mount()

    assert view.view == PageView.ACCESS_DENIED
    assert view.redirect == "/dashboard"
    assert view.events == []


def test_offline_page_shows_cached_operator(signed_in, backend, decoder):
    backend.profile_error = ServerOfflineError("down")

    view = building_page(signed_in, backend, decoder).mount()

    assert view.view == PageView.OFFLINE
    assert view.user.email == "staff@example.com"
    assert not decoder.is_running


def test_profile_server_error_shows_offline_page(signed_in, backend, decoder):
    backend.profile_error = BackendError("db down", 500)
    page = building_page(signed_in, backend, decoder)

    view = page.mount()

    assert view.view == PageView.OFFLINE
    assert view.user.email == "staff@example.com"
    assert not decoder.is_running
    assert page.scan("QR-1") is None
    assert backend.check_in_calls == []
    assert signed_in.token is not None


def test_session_page_requires_event(signed_in, backend, decoder):
    backend.profile = make_profile("event_manager")
    page = session_page(signed_in, backend, decoder)

    view = page.mount()

    assert view.view == PageView.SELECT_EVENT
    assert [e.id for e in view.events] == ["e-1", "e-2"]
    assert not decoder.is_running

    view = page.select_event("e-2")
    assert view.view == PageView.SCANNING
    assert view.selectedEvent.id == "e-2"
    assert decoder.is_running

    decoder.submit("QR-1")
    assert backend.check_in_calls == [("QR-1", CheckInType.SESSION, "e-2")]


def test_changing_event_resets_counters(signed_in, backend, decoder):
    backend.profile = make_profile("superadmin")
    page = session_page(signed_in, backend, decoder)
    page.mount()
    page.select_event("e-1")
    decoder.submit("QR-1")

    view = page.change_event()

    assert view.view == PageView.SELECT_EVENT
    assert view.counters.total == 0
    assert view.history == []
    assert view.result is None
    assert not decoder.is_running


def test_selecting_inactive_event_is_rejected(signed_in, backend, decoder):
    backend.profile = make_profile("event_manager")
    page = session_page(signed_in, backend, decoder)
    page.mount()

    with pytest.raises(EventNotFoundError):
        page.select_event("e-3")


def test_event_load_failure_is_reported(signed_in, backend, decoder):
    backend.profile = make_profile("event_manager")

    def offline():
        raise ServerOfflineError("Server is offline. Please try again later.")

    backend.fetch_all_events = offline

    view = session_page(signed_in, backend, decoder).mount()

    assert view.view == PageView.SELECT_EVENT
    assert view.message == "Server is offline. Please try again later."
    assert view.events == []


def test_scanner_failure_can_be_retried(signed_in, backend):
    decoder = FlakyDecoder()
    page = building_page(signed_in, backend, decoder)

    view = page.mount()
    assert view.view == PageView.SCANNING
    assert view.scanner.error == "Camera permission denied"
    assert view.scanner.canRetry
    assert not view.scanner.running

    decoder.fixed = True
    view = page.retry_scanner()

    assert view.scanner.error is None
    assert view.scanner.running


def test_unmount_stops_decoder_and_drops_late_results(signed_in, backend, decoder):
    page = building_page(signed_in, backend, decoder)
    page.mount()
    backend.during_check_in = lambda *args: page.unmount()

    decoder.submit("QR-1")

    assert not decoder.is_running
    assert page.orchestrator.history == []
    assert page.orchestrator.state == ScanState.PROCESSING


def test_failed_scan_view(signed_in, backend, decoder):
    backend.check_in_responses.append(RuntimeError("network down"))
    page = building_page(signed_in, backend, decoder)
    page.mount()

    result = page.scan("QR-1")

    assert result.outcome == Outcome.FAILED
    view = page.view()
    assert view.result.tone == "error"
    assert view.result.action == "Scan Next QR Code"
