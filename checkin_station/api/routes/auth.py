# =======================================================================================
# checkin_station/api/routes/auth.py - Operator Authentication Endpoints
# =======================================================================================
import logging

from fastapi import APIRouter, Depends, Request
from ...models.schemas import (
    AccountRegisterRequest, AuthResult, LoginRequest, MessageResponse, SessionInfo, UserProfile,
)
from ...services.api_client import BackendClient
from ...services.role_gate import landing_for
from ...services.session_context import SessionContext
from ...utils.exceptions import NotAuthenticatedError
from ...utils.validators import validate_account_form
from ..dependencies import get_client, get_session, require_profile

logger = logging.getLogger(__name__)

router = APIRouter()


def _signed_in(session: SessionContext, auth: AuthResult) -> SessionInfo:
    session.sign_in(auth.token, auth.user)
    profile = auth.user
    if profile is None:
        profile = session.load_profile().profile
    return SessionInfo(
        authenticated=True,
        user=profile,
        landing=landing_for(profile.role_enum) if profile else None,
    )


@router.post("/auth/login", response_model=SessionInfo)
def login(
    request: LoginRequest,
    session: SessionContext = Depends(get_session),
    client: BackendClient = Depends(get_client),
):
    auth = client.login(request.email, request.password)
    return _signed_in(session, auth)


@router.post("/auth/register", response_model=SessionInfo)
def register_account(
    request: AccountRegisterRequest,
    session: SessionContext = Depends(get_session),
    client: BackendClient = Depends(get_client),
):
    validate_account_form(request.password, request.confirmPassword)
    auth = client.register_account(
        request.name,
        request.email,
        request.password,
        phone_number=request.phoneNumber,
        college=request.college,
        department=request.department,
    )
    return _signed_in(session, auth)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(http_request: Request, session: SessionContext = Depends(get_session)):
    """Forget the credential and close any open scanner page."""
    state = http_request.app.state
    with state.pages_lock:
        for page in state.pages.values():
            page.unmount()
        state.pages.clear()
    session.invalidate()
    return MessageResponse(message="Logged out")


@router.get("/auth/me", response_model=SessionInfo)
def whoami(session: SessionContext = Depends(get_session)):
    """Current operator; the cached profile is returned (flagged offline) when the backend is down."""
    if not session.token:
        return SessionInfo(authenticated=False)

    try:
        lookup = session.load_profile()
    except NotAuthenticatedError:
        return SessionInfo(authenticated=False)

    return SessionInfo(authenticated=True, offline=lookup.offline, user=lookup.profile)


@router.get("/auth/landing", response_model=SessionInfo)
def landing(profile: UserProfile = Depends(require_profile)):
    """Where the check-in hub sends this operator."""
    return SessionInfo(authenticated=True, user=profile, landing=landing_for(profile.role_enum))
