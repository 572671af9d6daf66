# Middleware package init
"""
TripMatch Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Rate Limit] → [GZip] → [CORS] → Route

    - The request ID is set first so access lines and 429 bodies carry it
    - Rejected requests still get an access log line
    - Responses pass back through the same layers in reverse
"""
