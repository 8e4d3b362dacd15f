# =======================================================================================
# checkin_station/services/__init__.py - Services Package
# =======================================================================================
from .api_client import BackendClient
from .cache import TTLCache
from .checkin_page import CheckInPage
from .decoder import DecoderAdapter, ManualDecoder
from .event_selector import EventSelector
from .orchestrator import CheckInOrchestrator
from .role_gate import RoleGate
from .session_context import CredentialStore, SessionContext

__all__ = [
    "BackendClient", "TTLCache", "CheckInPage", "DecoderAdapter", "ManualDecoder",
    "EventSelector", "CheckInOrchestrator", "RoleGate", "CredentialStore", "SessionContext",
]
