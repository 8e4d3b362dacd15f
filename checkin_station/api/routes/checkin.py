# =======================================================================================
# checkin_station/api/routes/checkin.py - Check-in Page Endpoints
# =======================================================================================
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from ...models.enums import CheckInType
from ...models.schemas import (
    CheckInPageView, CheckInResponse, MessageResponse, ScanRequest, SelectEventRequest,
)
from ...services.api_client import BackendClient
from ...services.checkin_page import CheckInPage
from ..dependencies import get_client, get_page, new_page, require_token

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_page(request: Request) -> CheckInPage:
    return get_page(CheckInType.SESSION, request)


# Fixed paths first so they are not captured by /checkin/{check_in_type}
@router.post("/checkin/verify", response_model=CheckInResponse)
def verify_qr_code(
    request: ScanRequest,
    eventId: Optional[str] = None,
    _token: str = Depends(require_token),
    client: BackendClient = Depends(get_client),
):
    """Look a QR code up without checking anyone in."""
    return client.verify_qr_code(request.qrCode, eventId)


@router.post("/checkin/session/event", response_model=CheckInPageView)
def select_event(request: SelectEventRequest, page: CheckInPage = Depends(_session_page)):
    """Pick the session to scan for; counters and history start over."""
    return page.select_event(request.eventId)


@router.delete("/checkin/session/event", response_model=CheckInPageView)
def change_event(page: CheckInPage = Depends(_session_page)):
    return page.change_event()


@router.get("/checkin/{check_in_type}", response_model=CheckInPageView)
def page_view(page: CheckInPage = Depends(get_page)):
    return page.view()


@router.post("/checkin/{check_in_type}", response_model=CheckInPageView)
def mount_page(check_in_type: CheckInType, request: Request):
    """Open a scanner page. Any other open page is closed first; the camera is shared."""
    state = request.app.state
    with state.pages_lock:
        for open_page in state.pages.values():
            open_page.unmount()
        state.pages.clear()
        page = new_page(request, check_in_type)
        state.pages[check_in_type] = page

    logger.info("[api] Mounting %s check-in page", check_in_type.value)
    return page.mount()


@router.post("/checkin/{check_in_type}/scan", response_model=CheckInPageView)
def scan(request: ScanRequest, page: CheckInPage = Depends(get_page)):
    """Manual entry: feed a payload as if the camera had decoded it."""
    page.scan(request.qrCode)
    return page.view()


@router.post("/checkin/{check_in_type}/reset", response_model=CheckInPageView)
def reset(page: CheckInPage = Depends(get_page)):
    return page.reset()


@router.post("/checkin/{check_in_type}/scanner/retry", response_model=CheckInPageView)
def retry_scanner(page: CheckInPage = Depends(get_page)):
    return page.retry_scanner()


@router.post("/checkin/{check_in_type}/unmount", response_model=MessageResponse)
def unmount_page(check_in_type: CheckInType, request: Request):
    state = request.app.state
    with state.pages_lock:
        page = state.pages.pop(check_in_type, None)
    if page is not None:
        page.unmount()
    return MessageResponse(message=f"{check_in_type.value.capitalize()} check-in closed")


@router.get("/checkin/{check_in_type}/remote-stats")
def remote_stats(
    check_in_type: CheckInType,
    request: Request,
    eventId: Optional[str] = None,
    _token: str = Depends(require_token),
    client: BackendClient = Depends(get_client),
) -> Dict[str, Any]:
    """Backend-side totals. `stats` is null when the backend could not provide them."""
    if check_in_type == CheckInType.BUILDING:
        return {"checkInType": check_in_type.value, "stats": client.get_building_stats()}

    if eventId is None:
        page = request.app.state.pages.get(CheckInType.SESSION)
        event = page.orchestrator.event if page is not None else None
        eventId = event.id if event is not None else None
    if eventId is None:
        return {"checkInType": check_in_type.value, "eventId": None, "stats": None}

    return {
        "checkInType": check_in_type.value,
        "eventId": eventId,
        "stats": client.get_event_stats(eventId),
    }
