# =======================================================================================
# checkin_station/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "UserProfile", "Event", "TeamMember", "RegistrationData", "Registration",
    "CheckInResponse", "ScanResult", "ScanStats", "ResultView", "StatTile",
    "GateDecision", "CheckInPageView", "Role", "CheckInType", "EventStatus",
    "Outcome", "ScanState", "GateStatus", "PageView",
]
