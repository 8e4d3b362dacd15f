# =======================================================================================
# checkin_station/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "CheckInStationError", "NotAuthenticatedError", "AccessDeniedError",
    "ServerOfflineError", "BackendError", "FormValidationError",
    "RegistrationRejectedError", "EventNotFoundError", "ScannerError",
    "CameraPermissionError", "CameraNotFoundError", "DecoderStartError",
    "RegistrationValidator", "TeamBuilder", "validate_role_assignment",
    "validate_account_form",
]
