"""
Shared pytest fixtures: a fake symposium backend, a throwaway credential store
and a TestClient over the station API.
"""
import pytest
from fastapi.testclient import TestClient

from checkin_station.database import DatabaseManager
from checkin_station.main import create_app
from checkin_station.models.schemas import (
    AttendeeSummary, AuthResult, CheckInData, CheckInResponse, Event, EventSummary,
    Registration, UserProfile, UserWithRegistrations,
)
from checkin_station.services.decoder import ManualDecoder
from checkin_station.services.session_context import CredentialStore, SessionContext
from checkin_station.utils.exceptions import EventNotFoundError

TOKEN = "tok-123"


def make_profile(role="registration_team", **overrides):
    data = {
        "_id": "u-staff",
        "name": "Asha Staff",
        "email": "staff@example.com",
        "role": role,
    }
    data.update(overrides)
    return UserProfile.model_validate(data)


def make_event(event_id="e-1", status="upcoming", **overrides):
    data = {
        "_id": event_id,
        "title": f"Event {event_id}",
        "date": "2026-03-14",
        "startTime": "10:00",
        "venue": "Hall A",
        "status": status,
    }
    data.update(overrides)
    return Event.model_validate(data)


def success_response(name="Ravi Attendee", message="Check-in successful"):
    return CheckInResponse(
        success=True,
        message=message,
        data=CheckInData(
            user=AttendeeSummary(name=name, email="ravi@example.com"),
            event=EventSummary(title="Keynote", venue="Hall A", date="2026-03-14"),
            timestamp="2026-03-14T09:30:00Z",
        ),
        status_code=200,
    )


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self.body is None:
            raise ValueError("no body")
        return self.body


class FakeHttp:
    """Replays queued responses (or raises queued exceptions) and records requests."""

    def __init__(self, *responses):
        self.headers = {}
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.requests.append({"method": method, "url": url, "headers": headers,
                              "timeout": timeout, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeBackendClient:
    """In-memory stand-in for BackendClient."""

    base_url = "http://backend.test/api"

    def __init__(self):
        self.profile = make_profile()
        self.profile_error = None
        self.profile_calls = 0
        self.events = [
            make_event("e-1", "upcoming"),
            make_event("e-2", "ongoing"),
            make_event("e-3", "completed"),
            make_event("e-4", "cancelled"),
        ]
        self.check_in_responses = []
        self.check_in_calls = []
        # called with (qr_code, check_in_type, event_id) while the check-in is in flight
        self.during_check_in = None
        self.registrations = []
        self.reachable = True
        self.role_updates = []

    # auth / profile
    def login(self, email, password):
        return AuthResult(token=TOKEN, user=self.profile)

    def register_account(self, name, email, password, **kwargs):
        return AuthResult(token=TOKEN, user=make_profile("user", name=name, email=email))

    def fetch_user_profile(self):
        self.profile_calls += 1
        if self.profile_error is not None:
            raise self.profile_error
        return self.profile

    def fetch_user_with_registrations(self):
        return UserWithRegistrations(user=self.profile, registrations=[])

    # events
    def fetch_all_events(self):
        return list(self.events)

    def fetch_events(self):
        return [e for e in self.events if e.status == "upcoming"]

    def fetch_workshops(self):
        return [e for e in self.events if e.eventType == "workshop"]

    def fetch_event(self, event_id):
        for event in self.events:
            if event.id == event_id:
                return event
        raise EventNotFoundError(f"Event {event_id} is not open for check-in")

    def register_for_event(self, data):
        self.registrations.append(data)
        return Registration.model_validate(
            {"_id": "r-1", "event": data.eventId, "qrCode": "QR-R1", "registrationStatus": "registered"}
        )

    # check-in
    def perform_check_in(self, qr_code, check_in_type, event_id=None):
        self.check_in_calls.append((qr_code, check_in_type, event_id))
        if self.during_check_in is not None:
            self.during_check_in(qr_code, check_in_type, event_id)
        response = self.check_in_responses.pop(0) if self.check_in_responses else success_response()
        if isinstance(response, Exception):
            raise response
        return response

    def verify_qr_code(self, qr_code, event_id=None):
        return success_response(message="Valid QR code")

    def get_building_stats(self):
        return {"totalCheckedIn": 42}

    def get_event_stats(self, event_id):
        return {"eventId": event_id, "attended": 7}

    # admin
    def list_users(self):
        return [self.profile]

    def search_users(self, query):
        return [u for u in self.list_users() if query.lower() in u.name.lower()]

    def update_user_role(self, user_id, role):
        self.role_updates.append((user_id, role))

    def assign_role(self, email, role, event_ids):
        return "Role assigned successfully"

    def ping(self):
        return self.reachable


@pytest.fixture
def backend():
    return FakeBackendClient()


@pytest.fixture
def store(tmp_path):
    db = DatabaseManager(f"sqlite:///{tmp_path / 'station.db'}")
    yield CredentialStore(db)
    db.dispose()


@pytest.fixture
def session(store, backend):
    return SessionContext(store, client=backend)


@pytest.fixture
def signed_in(session, backend):
    session.sign_in(TOKEN, backend.profile)
    return session


@pytest.fixture
def decoder():
    return ManualDecoder()


@pytest.fixture
def client(session, backend, decoder):
    """Create a test client"""
    app = create_app(session=session, client=backend, decoder=decoder)
    with TestClient(app) as test_client:
        yield test_client
