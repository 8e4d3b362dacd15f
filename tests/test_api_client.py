"""
Backend client against a scripted HTTP session.
"""
import pytest
import requests

from checkin_station.models.enums import CheckInType, Role
from checkin_station.models.schemas import ApiError, ApiSuccess, Event, RegistrationData
from checkin_station.services.api_client import (
    CHECKIN_FAILED_MESSAGE, INVALID_RESPONSE_MESSAGE, OFFLINE_MESSAGE, BackendClient,
    parse_envelope,
)
from checkin_station.services.cache import TTLCache
from checkin_station.utils.exceptions import (
    AccessDeniedError, BackendError, NotAuthenticatedError, RegistrationRejectedError,
    ServerOfflineError,
)
from conftest import FakeHttp, FakeResponse

EVENT = {"_id": "e-1", "title": "Keynote", "status": "upcoming"}


def make_client(*responses, token="tok-123", **kwargs):
    http = FakeHttp(*responses)
    client = BackendClient(
        base_url="http://backend.test/", token_provider=lambda: token, http=http,
        cache=TTLCache(), **kwargs
    )
    return client, http


def test_base_url_and_headers():
    client, http = make_client(FakeResponse(200, {"success": True, "data": []}))

    client.fetch_all_events()

    request = http.requests[0]
    assert request["url"] == "http://backend.test/api/events"
    assert http.headers["ngrok-skip-browser-warning"] == "true"


def test_no_timeout_by_default():
    client, http = make_client(FakeResponse(200, {"success": True, "data": []}))

    client.fetch_all_events()

    assert http.requests[0]["timeout"] is None


def test_check_in_success_sends_bearer_token():
    body = {
        "success": True,
        "message": "Check-in successful",
        "data": {"user": {"name": "Ravi", "email": "ravi@example.com"}, "timestamp": "t"},
    }
    client, http = make_client(FakeResponse(200, body))

    response = client.perform_check_in("QR-1", CheckInType.BUILDING, event_id="ignored")

    request = http.requests[0]
    assert request["url"].endswith("/api/checkin/building")
    assert request["json"] == {"qrCode": "QR-1"}
    assert request["headers"]["Authorization"] == "Bearer tok-123"
    assert response.success
    assert response.data.user.name == "Ravi"
    assert response.status_code == 200


def test_session_check_in_sends_event_id():
    client, http = make_client(FakeResponse(200, {"success": True, "message": "ok"}))

    client.perform_check_in("QR-1", CheckInType.SESSION, "e-9")

    assert http.requests[0]["json"] == {"qrCode": "QR-1", "eventId": "e-9"}


def test_check_in_server_error_without_message():
    client, _ = make_client(FakeResponse(500, {"success": False}))

    response = client.perform_check_in("QR-1", CheckInType.BUILDING)

    assert not response.success
    assert response.message == CHECKIN_FAILED_MESSAGE
    assert response.status_code == 500


def test_check_in_error_message_is_kept():
    client, _ = make_client(FakeResponse(400, {"success": False, "message": "Invalid QR code"}))

    assert client.perform_check_in("bad", CheckInType.BUILDING).message == "Invalid QR code"


def test_check_in_offline():
    client, _ = make_client(requests.ConnectionError("refused"))

    response = client.perform_check_in("QR-1", CheckInType.BUILDING)

    assert not response.success
    assert response.message == OFFLINE_MESSAGE


def test_check_in_malformed_body():
    client, _ = make_client(FakeResponse(200, ["not", "an", "object"]))

    response = client.perform_check_in("QR-1", CheckInType.BUILDING)

    assert not response.success
    assert response.message == INVALID_RESPONSE_MESSAGE


@pytest.mark.parametrize("status,error", [
    (401, NotAuthenticatedError),
    (403, AccessDeniedError),
    (500, BackendError),
])
def test_profile_error_mapping(status, error):
    client, _ = make_client(FakeResponse(status, {"success": False, "message": "nope"}))

    with pytest.raises(error):
        client.fetch_user_profile()


def test_profile_offline():
    client, _ = make_client(requests.Timeout("slow"))

    with pytest.raises(ServerOfflineError):
        client.fetch_user_profile()


def test_profile_accepts_mongo_id():
    body = {"success": True, "data": {"_id": "u-1", "name": "A", "email": "a@x", "role": "superadmin"}}
    client, _ = make_client(FakeResponse(200, body))

    profile = client.fetch_user_profile()

    assert profile.id == "u-1"
    assert profile.role_enum == Role.SUPERADMIN


def test_events_are_cached():
    body = {"success": True, "data": [EVENT]}
    client, http = make_client(FakeResponse(200, body))

    first = client.fetch_events()
    second = client.fetch_events()

    assert first == second
    assert len(http.requests) == 1
    assert http.requests[0]["params"] == {"eventType": "event", "status": "upcoming"}


def test_registration_rejection_is_verbatim():
    client, _ = make_client(
        FakeResponse(400, {"success": False, "message": "Already registered for this event"})
    )

    with pytest.raises(RegistrationRejectedError) as exc:
        client.register_for_event(RegistrationData(eventId="e-1", phoneNumber="1", college="X"))

    assert exc.value.message == "Already registered for this event"


def test_registration_success_clears_event_cache():
    client, http = make_client(
        FakeResponse(200, {"success": True, "data": [EVENT]}),
        FakeResponse(201, {"success": True, "data": {"_id": "r-1", "event": "e-1", "qrCode": "QR"}}),
        FakeResponse(200, {"success": True, "data": [EVENT]}),
    )
    client.fetch_events()

    registration = client.register_for_event(RegistrationData(eventId="e-1"))
    client.fetch_events()

    assert registration.qrCode == "QR"
    assert len(http.requests) == 3


def test_stats_return_none_on_failure():
    client, _ = make_client(FakeResponse(500, {"success": False}))

    assert client.get_building_stats() is None


def test_login_does_not_send_token():
    body = {"token": "new-token", "user": {"id": "u-1", "name": "A", "email": "a@x"}}
    client, http = make_client(FakeResponse(200, body))

    auth = client.login("a@x", "secret")

    assert auth.token == "new-token"
    assert "Authorization" not in http.requests[0]["headers"]


def test_assign_role_scopes_events_to_event_managers():
    client, http = make_client(FakeResponse(200, {"success": True, "message": "Role updated"}))

    message = client.assign_role("a@x", Role.REGISTRATION_TEAM, ["e-1"])

    assert message == "Role updated"
    assert http.requests[0]["json"]["eventIds"] == []


def test_ping():
    client, _ = make_client(FakeResponse(200, {"success": True, "data": []}))
    offline, _ = make_client(requests.ConnectionError())

    assert client.ping()
    assert not offline.ping()


def test_parse_envelope():
    success = parse_envelope({"success": True, "data": EVENT}, Event)
    error = parse_envelope({"success": False, "message": "Event not found"}, Event)

    assert isinstance(success, ApiSuccess)
    assert success.data.title == "Keynote"
    assert isinstance(error, ApiError)
    assert error.message == "Event not found"

    with pytest.raises(BackendError):
        parse_envelope({"success": True, "data": {"title": 3}}, Event)
