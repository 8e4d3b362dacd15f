# =======================================================================================
# checkin_station/api/__init__.py - API Package
# =======================================================================================
