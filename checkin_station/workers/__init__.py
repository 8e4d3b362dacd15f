# =======================================================================================
# checkin_station/workers/__init__.py - Workers Package
# =======================================================================================
from .camera_worker import CameraDecoder

__all__ = ["CameraDecoder"]
