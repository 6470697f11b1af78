# Middleware package init
"""
Academia API — Middleware Package
==================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    - Request ID runs first so the access log line carries the id
    - The id is echoed back in the X-Request-ID response header
"""
