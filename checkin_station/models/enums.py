# =======================================================================================
# checkin_station/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Result view tones
Tone = Literal["success", "warning", "error", "processing"]

class Role(str, Enum):
    """Account roles assigned by the backend."""
    USER = "user"
    REGISTRATION_TEAM = "registration_team"
    EVENT_MANAGER = "event_manager"
    SUPERADMIN = "superadmin"

    @classmethod
    def parse(cls, value) -> "Role":
        """Unknown role strings gate as an ordinary attendee."""
        try:
            return cls(value)
        except ValueError:
            return cls.USER

class CheckInType(str, Enum):
    """Building-entrance attendance or a specific session's attendance."""
    BUILDING = "building"
    SESSION = "session"

class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

ACTIVE_EVENT_STATUSES = (EventStatus.UPCOMING, EventStatus.ONGOING)

class Outcome(str, Enum):
    """Result of a single check-in attempt."""
    SUCCESS = "success"
    ALREADY_CHECKED_IN = "already_checked_in"
    FAILED = "failed"

class ScanState(str, Enum):
    """Check-in orchestrator states."""
    IDLE = "idle"
    PROCESSING = "processing"
    RESULT = "result"

class GateStatus(str, Enum):
    """Role gate decisions for a scanner route."""
    ALLOWED = "allowed"
    LOGIN_REQUIRED = "login_required"
    ACCESS_DENIED = "access_denied"
    OFFLINE = "offline"

class PageView(str, Enum):
    """Sub-views a check-in page can be showing."""
    LOADING = "loading"
    LOGIN_REQUIRED = "login_required"
    ACCESS_DENIED = "access_denied"
    OFFLINE = "offline"
    SELECT_EVENT = "select_event"
    SCANNING = "scanning"

LOGIN_ROUTE = "/login"
DASHBOARD_ROUTE = "/dashboard"
CHECKIN_HUB_ROUTE = "/checkin"
