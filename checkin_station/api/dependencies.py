# =======================================================================================
# checkin_station/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import Depends, Request
from ..models.enums import CheckInType, Role
from ..models.schemas import UserProfile
from ..services.api_client import OFFLINE_MESSAGE, BackendClient
from ..services.checkin_page import CheckInPage
from ..services.session_context import SessionContext
from ..utils.exceptions import AccessDeniedError, NotAuthenticatedError, ServerOfflineError


def get_session(request: Request) -> SessionContext:
    """Dependency to get the operator session."""
    return request.app.state.session


def get_client(request: Request) -> BackendClient:
    """Dependency to get the backend client."""
    return request.app.state.client


def require_token(session: SessionContext = Depends(get_session)) -> str:
    """Reject the request before any backend call when nobody is signed in."""
    token = session.token
    if not token:
        raise NotAuthenticatedError("Please log in")
    return token


def require_profile(
    session: SessionContext = Depends(get_session), _token: str = Depends(require_token)
) -> UserProfile:
    """Fresh profile for the operator. A cached profile never authorises."""
    lookup = session.load_profile()
    if lookup.offline:
        raise ServerOfflineError(OFFLINE_MESSAGE)
    return lookup.profile


def require_superadmin(profile: UserProfile = Depends(require_profile)) -> UserProfile:
    if profile.role_enum != Role.SUPERADMIN:
        raise AccessDeniedError("Superadmin role required")
    return profile


def get_page(check_in_type: CheckInType, request: Request) -> CheckInPage:
    """Current page for a check-in type, created (unmounted) on first use."""
    state = request.app.state
    with state.pages_lock:
        page = state.pages.get(check_in_type)
        if page is None:
            page = new_page(request, check_in_type)
            state.pages[check_in_type] = page
        return page


def new_page(request: Request, check_in_type: CheckInType) -> CheckInPage:
    """Pages share the station's single decoder; only one is mounted at a time."""
    state = request.app.state
    return CheckInPage(
        check_in_type,
        state.session,
        state.client,
        decoder=state.decoder,
    )
