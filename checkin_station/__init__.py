# =======================================================================================
# checkin_station/__init__.py - Package Initialization
# =======================================================================================
"""
Symposium Check-in Station

Kiosk-side service for building-entrance and session check-in: decodes attendee
QR codes from a local camera, submits them to the symposium backend and keeps
per-page scan statistics for the operator.
"""

__version__ = "1.0.0"
__author__ = "Symposium Check-in Team"
