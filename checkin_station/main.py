# =======================================================================================
# checkin_station/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import config
from .api.routes.admin import router as admin_router
from .api.routes.auth import router as auth_router
from .api.routes.checkin import router as checkin_router
from .api.routes.events import router as events_router
from .models.enums import DASHBOARD_ROUTE, LOGIN_ROUTE
from .models.schemas import HealthResponse
from .services.api_client import OFFLINE_MESSAGE, BackendClient
from .services.decoder import DecoderAdapter, ManualDecoder
from .services.session_context import SessionContext
from .utils.exceptions import (
    AccessDeniedError, BackendError, CheckInStationError, EventNotFoundError,
    FormValidationError, NotAuthenticatedError, RegistrationRejectedError, ScannerError,
    ServerOfflineError,
)
from .workers.camera_worker import CameraDecoder

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s"

# First match wins; subclasses before their bases
ERROR_RESPONSES = [
    (NotAuthenticatedError, 401, LOGIN_ROUTE),
    (AccessDeniedError, 403, DASHBOARD_ROUTE),
    (ServerOfflineError, 503, None),
    (FormValidationError, 400, None),
    (RegistrationRejectedError, 400, None),
    (EventNotFoundError, 404, None),
    (ScannerError, 503, None),
    (BackendError, 502, None),
]


def setup_logging(debug: bool = False):
    """Console logging for the station's own loggers."""
    level = logging.DEBUG if debug else logging.INFO
    package_logger = logging.getLogger("checkin_station")
    package_logger.setLevel(level)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    # Suppress excessive SQLAlchemy logging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def default_decoder() -> DecoderAdapter:
    """Camera decoding when enabled, otherwise manual entry only."""
    if config.CAMERA_AUTOSTART:
        return CameraDecoder()
    return ManualDecoder()


def error_response(exc: CheckInStationError) -> JSONResponse:
    status_code, redirect = 500, None
    for exc_type, code, target in ERROR_RESPONSES:
        if isinstance(exc, exc_type):
            status_code, redirect = code, target
            break

    message = exc.message if isinstance(exc, BackendError) else str(exc)
    body = {"success": False, "message": message or "Unexpected error"}
    if redirect:
        body["redirect"] = redirect
    return JSONResponse(status_code=status_code, content=body)


def create_app(
    session: Optional[SessionContext] = None,
    client: Optional[BackendClient] = None,
    decoder: Optional[DecoderAdapter] = None,
) -> FastAPI:
    setup_logging(config.API_DEBUG)

    session = session or SessionContext()
    if client is None:
        client = BackendClient(token_provider=lambda: session.token)
    session.bind_client(client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[station] Check-in station started (backend %s)", client.base_url)
        yield
        with app.state.pages_lock:
            for page in app.state.pages.values():
                page.unmount()
            app.state.pages.clear()
        app.state.decoder.set_active(False)
        logger.info("[station] Check-in station stopped")

    app = FastAPI(
        title="Symposium Check-in Station API",
        version=__version__,
        description="Kiosk service for building and session QR check-in",
        debug=config.API_DEBUG,
        lifespan=lifespan,
    )

    app.state.session = session
    app.state.client = client
    app.state.decoder = decoder or default_decoder()
    app.state.pages = {}
    app.state.pages_lock = threading.Lock()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CheckInStationError)
    async def station_error_handler(request: Request, exc: CheckInStationError):
        logger.info("[api] %s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        return error_response(exc)

    # Routers
    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(checkin_router, prefix="/api", tags=["checkin"])
    app.include_router(events_router, prefix="/api", tags=["events"])
    app.include_router(admin_router, prefix="/api", tags=["admin"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            session.store.db.fetch_one("SELECT 1")
        except SQLAlchemyError as e:
            logger.error("[station] Credential store unavailable: %s", e)
            return HealthResponse(status="error", backendReachable=False, message=str(e))

        if client.ping():
            return HealthResponse(status="ok", backendReachable=True)
        return HealthResponse(status="offline", backendReachable=False, message=OFFLINE_MESSAGE)

    return app


app = create_app()
