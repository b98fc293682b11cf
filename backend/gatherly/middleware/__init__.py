# Middleware package init
"""
Gatherly Backend: Middleware Package
======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

Request ID runs first so every access-log line and error body carries it.
"""
