# =======================================================================================
# checkin_station/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar, Union
from urllib.parse import quote
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from .enums import (
    ACTIVE_EVENT_STATUSES, CheckInType, EventStatus, GateStatus, Outcome, PageView, Role, ScanState, Tone,
)

T = TypeVar("T")

# ========== Backend envelopes ==========

class ApiSuccess(BaseModel, Generic[T]):
    """`{success: true, data: ...}` envelope."""
    success: Literal[True]
    data: T

class ApiError(BaseModel):
    """`{success: false, message: ...}` envelope."""
    success: Literal[False] = False
    message: str = ""
    error: Optional[str] = None

# ========== Users ==========

class UserProfile(BaseModel):
    """Profile as returned by /users/profile (and the admin user lists)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    email: str
    picture: Optional[str] = None
    phoneNumber: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    role: str = Role.USER.value
    checkedIn: bool = False
    checkInTime: Optional[datetime] = None
    lastLogin: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    @property
    def role_enum(self) -> Role:
        return Role.parse(self.role)

    @property
    def avatar_url(self) -> str:
        """Profile picture, or a generated avatar when none is set."""
        if self.picture and self.picture.strip():
            return self.picture
        return default_avatar_url(self.name)

def default_avatar_url(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote(name)}&background=667eea&color=fff&size=200"

class AuthResult(BaseModel):
    token: str
    user: Optional[UserProfile] = None

# ========== Events ==========

class TeamSize(BaseModel):
    min: int = Field(1, ge=1)
    max: int = Field(1, ge=1)

class Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    description: str = ""
    date: str = ""
    startTime: str = ""
    endTime: str = ""
    venue: str = ""
    capacity: int = 0
    registeredCount: int = 0
    eventType: str = "talk"
    status: str = "upcoming"
    speakers: List[str] = Field(default_factory=list)
    isTeamEvent: bool = False
    teamSize: Optional[TeamSize] = None

    @property
    def is_active(self) -> bool:
        return self.status in [s.value for s in ACTIVE_EVENT_STATUSES]

class EventSummary(BaseModel):
    title: str
    date: Optional[str] = None
    venue: Optional[str] = None

# ========== Registrations ==========

class TeamMember(BaseModel):
    name: str = ""
    email: str = ""
    phoneNumber: str = ""
    college: str = ""
    department: Optional[str] = None
    year: Optional[str] = None
    isLeader: bool = False

class RegistrationData(BaseModel):
    """Payload submitted by the registration form."""
    eventId: str
    isTeamRegistration: bool = False
    teamName: Optional[str] = None
    teamMembers: Optional[List[TeamMember]] = None
    phoneNumber: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    year: Optional[str] = None

class Registration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user: Optional[str] = None
    event: Optional[Union[Event, str]] = None
    isTeamRegistration: bool = False
    teamName: Optional[str] = None
    teamMembers: Optional[List[TeamMember]] = None
    phoneNumber: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    year: Optional[str] = None
    qrCode: str = ""
    qrCodeImage: Optional[str] = None
    registrationStatus: str = "registered"
    createdAt: Optional[datetime] = None

class RegisteredEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    date: str = ""
    startTime: str = ""
    venue: str = ""

class EventRegistration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    event: RegisteredEvent
    registrationStatus: str = "registered"
    createdAt: Optional[datetime] = None

class UserWithRegistrations(BaseModel):
    user: UserProfile
    registrations: List[EventRegistration] = Field(default_factory=list)

# ========== Check-in ==========

class AttendeeSummary(BaseModel):
    name: str
    email: Optional[str] = None
    picture: Optional[str] = None

class CheckInData(BaseModel):
    user: Optional[AttendeeSummary] = None
    event: Optional[EventSummary] = None
    timestamp: Optional[str] = None

class CheckInResponse(BaseModel):
    """Body of the backend check-in and verify calls."""
    success: bool
    alreadyCheckedIn: Optional[bool] = None
    message: str = ""
    data: Optional[CheckInData] = None
    # HTTP status of the call; never serialized
    status_code: Optional[int] = Field(default=None, exclude=True)

    @property
    def outcome(self) -> Outcome:
        if self.success and not self.alreadyCheckedIn:
            return Outcome.SUCCESS
        if self.alreadyCheckedIn:
            return Outcome.ALREADY_CHECKED_IN
        return Outcome.FAILED

class ScanResult(BaseModel):
    """Ephemeral outcome of one scan; lives in the page history only."""
    outcome: Outcome
    message: str
    checkInType: CheckInType
    user: Optional[AttendeeSummary] = None
    event: Optional[EventSummary] = None
    timestamp: Optional[str] = None
    scannedAt: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_response(cls, response: CheckInResponse, check_in_type: CheckInType) -> "ScanResult":
        data = response.data or CheckInData()
        return cls(
            outcome=response.outcome,
            message=response.message,
            checkInType=check_in_type,
            user=data.user,
            event=data.event,
            timestamp=data.timestamp,
        )

    @classmethod
    def failed(cls, message: str, check_in_type: CheckInType) -> "ScanResult":
        return cls(outcome=Outcome.FAILED, message=message, checkInType=check_in_type)

class ScanStats(BaseModel):
    total: int = 0
    successful: int = 0
    alreadyCheckedIn: int = 0
    failed: int = 0

    def record(self, outcome: Outcome):
        if outcome == Outcome.SUCCESS:
            self.successful += 1
        elif outcome == Outcome.ALREADY_CHECKED_IN:
            self.alreadyCheckedIn += 1
        else:
            self.failed += 1

# ========== Presentation ==========

class ResultView(BaseModel):
    tone: Tone
    title: str
    message: str
    attendee: Optional[AttendeeSummary] = None
    avatarUrl: Optional[str] = None
    event: Optional[EventSummary] = None
    timestamp: Optional[str] = None
    action: Optional[str] = None

class StatTile(BaseModel):
    label: str
    value: int
    tone: str

class ScannerStatus(BaseModel):
    active: bool = False
    running: bool = False
    error: Optional[str] = None
    canRetry: bool = False

class GateDecision(BaseModel):
    status: GateStatus
    profile: Optional[UserProfile] = None
    redirect: Optional[str] = None
    message: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.status == GateStatus.ALLOWED

class CheckInPageView(BaseModel):
    checkInType: CheckInType
    view: PageView
    state: ScanState
    redirect: Optional[str] = None
    message: Optional[str] = None
    user: Optional[UserProfile] = None
    events: List[Event] = Field(default_factory=list)
    selectedEvent: Optional[Event] = None
    result: Optional[ResultView] = None
    stats: List[StatTile] = Field(default_factory=list)
    counters: ScanStats = Field(default_factory=ScanStats)
    history: List[ScanResult] = Field(default_factory=list)
    scanner: ScannerStatus = Field(default_factory=ScannerStatus)

# ========== Local API requests/responses ==========

class LoginRequest(BaseModel):
    email: str
    password: str

class AccountRegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    confirmPassword: str
    phoneNumber: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None

class SessionInfo(BaseModel):
    authenticated: bool
    offline: bool = False
    user: Optional[UserProfile] = None
    landing: Optional[str] = None

class ScanRequest(BaseModel):
    qrCode: str = Field(..., min_length=1, description="Decoded QR payload")

class SelectEventRequest(BaseModel):
    eventId: str

class RoleUpdateRequest(BaseModel):
    role: Role

class EventStatusUpdate(BaseModel):
    status: EventStatus

class RoleAssignRequest(BaseModel):
    email: str
    role: Role
    eventIds: List[str] = Field(default_factory=list)

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class HealthResponse(BaseModel):
    status: str                 # "ok" | "offline"
    backendReachable: bool
    message: Optional[str] = None

