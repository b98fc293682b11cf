"""
Gatherly Backend: Package Initializer
=======================================

What: A household events API. Parents create events, invite members of the
      household, and invitees accept.

Architecture Note:

    ┌─────────────────────────────────────┐
    │      Routes (thin controllers)      │  ← params + principal → one call
    ├─────────────────────────────────────┤
    │     Services (operation objects)    │  ← authorize, build, persist, dispatch
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database (Persistence) / Notifier  │  ← async sessions, delivery
    └─────────────────────────────────────┘

    Errors raised anywhere below the routes are translated to HTTP responses
    in one place (gatherly.api.error_handlers).
"""

__version__ = "1.0.0"
