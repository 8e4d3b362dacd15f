# =======================================================================================
# checkin_station/api/routes/__init__.py - Route Modules
# =======================================================================================
