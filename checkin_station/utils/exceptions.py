# =======================================================================================
# checkin_station/utils/exceptions.py - Custom Exceptions
# =======================================================================================
from typing import Optional

class CheckInStationError(Exception):
    """Base exception for the check-in station."""
    pass

class NotAuthenticatedError(CheckInStationError):
    """Raised when the token is missing, expired or rejected (401)."""
    pass

class AccessDeniedError(CheckInStationError):
    """Raised when the session is valid but the role is insufficient (403)."""
    pass

class ServerOfflineError(CheckInStationError):
    """Raised when the backend cannot be reached at all."""
    pass

class BackendError(CheckInStationError):
    """Raised for any other non-2xx or malformed backend response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

class FormValidationError(CheckInStationError):
    """Raised when a form (registration, role assignment, account) fails client-side validation."""
    pass

class RegistrationRejectedError(BackendError):
    """Raised when the backend rejects a registration; message is shown verbatim."""
    pass

class EventNotFoundError(CheckInStationError):
    """Raised when an event id is not in the loaded catalog."""
    pass

class ScannerError(CheckInStationError):
    """Base exception for camera/decoder start failures."""
    pass

class CameraPermissionError(ScannerError):
    """Raised when access to the camera device is denied."""
    pass

class CameraNotFoundError(ScannerError):
    """Raised when no camera device is present."""
    pass

class DecoderStartError(ScannerError):
    """Raised when the decoder fails to start for any other reason."""
    pass
