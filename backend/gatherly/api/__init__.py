# API support package init
"""
Gatherly Backend: API Support
===============================

What:  HTTP-boundary helpers shared by the routers.

    - error_handlers.py: central exception-kind → status table
    - principal.py:      acting-user dependency
"""
