# =======================================================================================
# checkin_station/config.py - Configuration Management
# =======================================================================================
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """Helper to parse integer environment variables."""
    v = os.getenv(name)
    return int(v) if v and v.isdigit() else default

def _env_float(name: str) -> Optional[float]:
    """Helper to parse optional float environment variables."""
    v = os.getenv(name)
    try:
        return float(v) if v else None
    except ValueError:
        return None

class Config:
    # Remote symposium backend
    API_URL: str = os.getenv("API_URL", "http://localhost:5000").rstrip("/")
    # Unset means requests wait for the backend indefinitely
    BACKEND_TIMEOUT: Optional[float] = _env_float("BACKEND_TIMEOUT")

    # Local station API
    API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))

    # Credential store (token + cached profile)
    STORE_URL: str = os.getenv("STORE_URL", "sqlite:///checkin_station.db")

    # Camera
    CAMERA_INDEX: int = _env_int("CAMERA_INDEX", 0)
    CAMERA_FPS: int = _env_int("CAMERA_FPS", 10)
    CAMERA_AUTOSTART: bool = os.getenv("CAMERA_AUTOSTART", "true").lower() == "true"
    SCAN_DEBOUNCE_SECONDS: float = float(os.getenv("SCAN_DEBOUNCE_SECONDS", "1.5"))

    # Scanner page
    HISTORY_LIMIT: int = _env_int("HISTORY_LIMIT", 10)
    EVENTS_CACHE_TTL: int = _env_int("EVENTS_CACHE_TTL", 300)

config = Config()
