# =======================================================================================
# checkin_station/services/api_client.py - Symposium Backend REST Client
# =======================================================================================
import logging
from typing import Any, Callable, Dict, List, Optional

import requests
from pydantic import ValidationError

from ..config import config
from ..models.enums import CheckInType, Role
from ..models.schemas import (
    ApiError, ApiSuccess, AuthResult, CheckInResponse, Event, Registration, RegistrationData,
    UserProfile, UserWithRegistrations,
)
from ..utils.exceptions import (
    AccessDeniedError, BackendError, NotAuthenticatedError, RegistrationRejectedError,
    ServerOfflineError,
)
from .cache import TTLCache

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "Server is offline. Please try again later."
CHECKIN_FAILED_MESSAGE = "Check-in failed"
INVALID_RESPONSE_MESSAGE = "Invalid response from server"


def parse_envelope(body: Any, data_type: Any):
    """
    Validate a backend body into ApiSuccess[data_type] or ApiError.
    Bodies without an envelope (a bare list/object) are treated as the data itself.
    """
    if isinstance(body, dict) and body.get("success") is False:
        return ApiError.model_validate(body)

    payload = body["data"] if isinstance(body, dict) and "data" in body else body
    try:
        return ApiSuccess[data_type].model_validate({"success": True, "data": payload})
    except ValidationError as e:
        logger.warning("[backend] Response failed validation: %s", e)
        raise BackendError(INVALID_RESPONSE_MESSAGE)


class BackendClient:
    """Thin client over the symposium REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: Optional[float] = None,
        cache: Optional[TTLCache] = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or config.API_URL).rstrip("/") + "/api"
        self.token_provider = token_provider or (lambda: None)
        self.timeout = timeout if timeout is not None else config.BACKEND_TIMEOUT
        self.cache = cache or TTLCache(default_duration=config.EVENTS_CACHE_TTL)
        self.http = http or requests.Session()
        self.http.headers.update({
            "Content-Type": "application/json",
            "ngrok-skip-browser-warning": "true",
        })

    # ----------------------------------------------------------------------
    # Transport helpers
    # ----------------------------------------------------------------------
    def _request(self, method: str, path: str, auth: bool = True, **kwargs) -> requests.Response:
        headers = kwargs.pop("headers", {})
        if auth:
            token = self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        try:
            return self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("[backend] %s %s unreachable: %s", method, path, e)
            raise ServerOfflineError(OFFLINE_MESSAGE) from e
        except requests.RequestException as e:
            logger.error("[backend] %s %s failed: %s", method, path, e)
            raise BackendError(str(e)) from e

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _message(body: Any) -> Optional[str]:
        if isinstance(body, dict):
            message = body.get("message")
            if isinstance(message, str) and message.strip():
                return message
        return None

    def _raise_for_status(self, response: requests.Response, body: Any, default_message: str):
        if response.status_code == 401:
            raise NotAuthenticatedError(self._message(body) or "Not authenticated")
        if response.status_code == 403:
            raise AccessDeniedError(self._message(body) or "Access denied")
        if not response.ok:
            raise BackendError(self._message(body) or default_message, response.status_code)

    def _call(self, method: str, path: str, data_type: Any, default_message: str,
              auth: bool = True, **kwargs):
        """Issue a request and return the validated `data` of a success envelope."""
        response = self._request(method, path, auth=auth, **kwargs)
        body = self._json(response)
        self._raise_for_status(response, body, default_message)

        envelope = parse_envelope(body, data_type)
        if isinstance(envelope, ApiError):
            raise BackendError(envelope.message or default_message, response.status_code)
        return envelope.data

    # ----------------------------------------------------------------------
    # Auth
    # ----------------------------------------------------------------------
    def _auth_call(self, path: str, payload: Dict[str, Any], default_message: str) -> AuthResult:
        response = self._request("POST", path, auth=False, json=payload)
        body = self._json(response)
        if not response.ok:
            raise BackendError(self._message(body) or default_message, response.status_code)
        try:
            return AuthResult.model_validate(body)
        except ValidationError:
            raise BackendError(INVALID_RESPONSE_MESSAGE, response.status_code)

    def login(self, email: str, password: str) -> AuthResult:
        return self._auth_call("/auth/login", {"email": email, "password": password}, "Login failed")

    def register_account(self, name: str, email: str, password: str, phone_number: Optional[str] = None,
                         college: Optional[str] = None, department: Optional[str] = None) -> AuthResult:
        payload = {
            "name": name,
            "email": email,
            "password": password,
            "phoneNumber": phone_number,
            "college": college,
            "department": department,
        }
        return self._auth_call("/auth/register", payload, "Registration failed")

    # ----------------------------------------------------------------------
    # Profile
    # ----------------------------------------------------------------------
    def fetch_user_profile(self) -> UserProfile:
        """401 raises NotAuthenticatedError; unreachable backend raises ServerOfflineError."""
        return self._call("GET", "/users/profile", UserProfile, "Failed to fetch user profile")

    def fetch_user_with_registrations(self) -> UserWithRegistrations:
        return self._call("GET", "/users/me", UserWithRegistrations, "Failed to fetch user data")

    # ----------------------------------------------------------------------
    # Events
    # ----------------------------------------------------------------------
    def fetch_events(self) -> List[Event]:
        """Upcoming regular events, cached."""
        return self.cache.with_cache(
            "events",
            lambda: self._call("GET", "/events", List[Event], "Failed to fetch events", auth=False,
                               params={"eventType": "event", "status": "upcoming"}),
        )

    def fetch_workshops(self) -> List[Event]:
        """Upcoming workshops, cached."""
        return self.cache.with_cache(
            "workshops",
            lambda: self._call("GET", "/events", List[Event], "Failed to fetch workshops", auth=False,
                               params={"eventType": "workshop", "status": "upcoming"}),
        )

    def fetch_all_events(self) -> List[Event]:
        """Whole catalog, uncached; used by the session event selector."""
        return self._call("GET", "/events", List[Event], "Failed to fetch events", auth=False)

    def fetch_event(self, event_id: str) -> Event:
        return self._call("GET", f"/events/{event_id}", Event, "Event not found", auth=False)

    def invalidate_event_cache(self):
        self.cache.delete("events")
        self.cache.delete("workshops")

    # ----------------------------------------------------------------------
    # Registration
    # ----------------------------------------------------------------------
    def register_for_event(self, data: RegistrationData) -> Registration:
        """Submit a registration; backend rejections keep their message verbatim."""
        response = self._request("POST", "/registrations", json=data.model_dump(exclude_none=True))
        body = self._json(response)
        if response.status_code == 401:
            raise NotAuthenticatedError(self._message(body) or "Not authenticated")
        if not response.ok:
            raise RegistrationRejectedError(
                self._message(body) or "Failed to register for event", response.status_code
            )

        envelope = parse_envelope(body, Registration)
        if isinstance(envelope, ApiError):
            raise RegistrationRejectedError(envelope.message or "Failed to register for event")
        self.invalidate_event_cache()
        return envelope.data

    # ----------------------------------------------------------------------
    # Check-in
    # ----------------------------------------------------------------------
    def _check_in_call(self, path: str, payload: Dict[str, Any], fallback: str) -> CheckInResponse:
        try:
            response = self._request("POST", path, json=payload)
        except ServerOfflineError:
            return CheckInResponse(success=False, message=OFFLINE_MESSAGE)
        except BackendError as e:
            return CheckInResponse(success=False, message=e.message or fallback)

        body = self._json(response)
        if not response.ok:
            return CheckInResponse(
                success=False,
                message=self._message(body) or fallback,
                status_code=response.status_code,
            )

        try:
            result = CheckInResponse.model_validate(body)
        except ValidationError:
            logger.warning("[backend] Malformed check-in response: %r", body)
            return CheckInResponse(
                success=False, message=INVALID_RESPONSE_MESSAGE, status_code=response.status_code
            )
        result.status_code = response.status_code
        return result

    def perform_check_in(self, qr_code: str, check_in_type: CheckInType,
                         event_id: Optional[str] = None) -> CheckInResponse:
        """
        Check an attendee in. Never raises for HTTP or connectivity failures:
        those come back as an unsuccessful CheckInResponse.
        """
        payload: Dict[str, Any] = {"qrCode": qr_code}
        if check_in_type == CheckInType.SESSION and event_id:
            payload["eventId"] = event_id
        return self._check_in_call(f"/checkin/{check_in_type.value}", payload, CHECKIN_FAILED_MESSAGE)

    def verify_qr_code(self, qr_code: str, event_id: Optional[str] = None) -> CheckInResponse:
        """Look a QR code up without checking anyone in."""
        payload: Dict[str, Any] = {"qrCode": qr_code}
        if event_id:
            payload["eventId"] = event_id
        return self._check_in_call("/checkin/verify", payload, "Verification failed")

    def _optional_stats(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            return self._call("GET", path, Dict[str, Any], "Failed to fetch stats")
        except Exception as e:
            logger.error("[backend] Failed to fetch %s: %s", path, e)
            return None

    def get_building_stats(self) -> Optional[Dict[str, Any]]:
        return self._optional_stats("/checkin/stats/building")

    def get_event_stats(self, event_id: str) -> Optional[Dict[str, Any]]:
        return self._optional_stats(f"/checkin/stats/event/{event_id}")

    # ----------------------------------------------------------------------
    # Admin
    # ----------------------------------------------------------------------
    def list_users(self) -> List[UserProfile]:
        return self._call("GET", "/users", List[UserProfile], "Failed to fetch users")

    def search_users(self, query: str) -> List[UserProfile]:
        if not query.strip():
            return self.list_users()
        return self._call("GET", "/admin/users/search", List[UserProfile], "Search failed",
                          params={"query": query})

    def update_user_role(self, user_id: str, role: Role) -> Any:
        return self._call("PUT", f"/users/{user_id}/role", Any, "Failed to update role",
                          json={"role": role.value})

    def delete_user(self, user_id: str) -> Any:
        return self._call("DELETE", f"/admin/users/{user_id}", Any, "Failed to delete user")

    def update_event_status(self, event_id: str, status: str) -> Any:
        result = self._call("PUT", f"/events/{event_id}", Any, "Failed to update status",
                            json={"status": status})
        self.invalidate_event_cache()
        return result

    def delete_event(self, event_id: str) -> Any:
        result = self._call("DELETE", f"/events/{event_id}", Any, "Failed to delete event")
        self.invalidate_event_cache()
        return result

    def recent_registrations(self, limit: int = 100) -> List[Registration]:
        return self._call("GET", "/admin/registrations/recent", List[Registration],
                          "Failed to fetch registrations", params={"limit": limit})

    def admin_overview(self) -> Dict[str, Any]:
        return self._call("GET", "/admin/stats/overview", Dict[str, Any],
                          "Failed to fetch admin statistics")

    def list_role_assignments(self) -> Dict[str, Any]:
        users = self._call("GET", "/admin/roles/users", Any, "Failed to fetch data")
        events = self._call("GET", "/admin/roles/events", Any, "Failed to fetch data")
        return {"users": users, "events": events}

    def assign_role(self, email: str, role: Role, event_ids: List[str]) -> str:
        response = self._request("PUT", "/admin/roles/assign", json={
            "email": email,
            "role": role.value,
            "eventIds": event_ids if role == Role.EVENT_MANAGER else [],
        })
        body = self._json(response)
        self._raise_for_status(response, body, "Failed to assign role")
        return self._message(body) or "Role assigned successfully"

    def revoke_role(self, user_id: str) -> str:
        self._call("DELETE", f"/admin/roles/revoke/{user_id}", Any, "Failed to revoke role")
        return "Role revoked successfully"

    def ping(self) -> bool:
        """True when the backend answers at all."""
        try:
            self._request("GET", "/events", auth=False, params={"limit": 1})
            return True
        except (ServerOfflineError, BackendError):
            return False
