# Routes package init
"""
Gatherly Backend: API Routes Package
======================================

Route Inventory:
    - users.py:        POST /api/users, GET /api/users/me
    - events.py:       POST /api/events, GET /api/events, GET /api/events/{id}
    - invitations.py:  POST /api/events/{id}/invitations,
                       POST /api/invitations/{id}/accept
    - health.py:       GET  /health

Routes are thin: extract permitted params and the acting user, call one
service, serialize the result. No try/except; errors go to the central table.
"""
