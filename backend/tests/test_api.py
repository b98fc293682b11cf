"""
Gatherly Backend: API Integration Tests
=========================================

What:  End-to-end requests through middleware, controllers, services and the
       central error mapping, against the per-test SQLite database.

What we test:
    ✅ Success responses carry the persisted entity (including its id)
    ✅ Every failure kind arrives with its mapped status and error body
    ✅ Only permitted parameters reach the services
    ✅ Request ids are propagated into headers and error bodies
    ✅ Health check reports database and notifier state
"""

from uuid import uuid4

import pytest

from gatherly.exceptions import CircuitBreakerOpenError
from gatherly.services.notifications import get_notifier

START = "2026-09-12T18:00:00Z"


async def _create_event(client, headers, **body):
    payload = {"name": "Movie Night", "start_at": START}
    payload.update(body)
    return await client.post("/api/events", json=payload, headers=headers)


class TestUsersAPI:

    @pytest.mark.asyncio
    async def test_register_user(self, client):
        """Registering a user should return 201 with the persisted user."""
        response = await client.post(
            "/api/users",
            json={"name": "Robin", "email": "robin@example.com", "role": "parent"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["role"] == "parent"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_409(self, client):
        """A repeated e-mail should map to 409 conflict."""
        body = {"name": "Robin", "email": "robin@example.com"}
        await client.post("/api/users", json=body)
        response = await client.post("/api/users", json=body)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_invalid_user_is_422(self, client):
        """A blank name should return 422 with per-field errors."""
        response = await client.post("/api/users", json={"email": "no-name@example.com"})

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["details"]["errors"] == [{"field": "name", "message": "can't be blank"}]

    @pytest.mark.asyncio
    async def test_me(self, client, parent, as_user):
        """The principal endpoint should echo the caller."""
        response = await client.get("/api/users/me", headers=as_user(parent))
        assert response.status_code == 200
        assert response.json()["id"] == str(parent.id)


class TestPrincipal:

    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, client):
        """Requests without X-User-ID should be rejected with 401."""
        response = await client.get("/api/events")
        assert response.status_code == 401
        assert response.json()["message"] == "Missing X-User-ID header"

    @pytest.mark.asyncio
    async def test_malformed_header_is_401(self, client):
        """A non-UUID principal header should be rejected with 401."""
        response = await client.get("/api/events", headers={"X-User-ID": "not-a-uuid"})
        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"

    @pytest.mark.asyncio
    async def test_unknown_user_is_401(self, client):
        """A principal that does not exist should be rejected with 401."""
        response = await client.get("/api/events", headers={"X-User-ID": str(uuid4())})
        assert response.status_code == 401
        assert response.json()["message"] == "Unknown user"


class TestEventsAPI:

    @pytest.mark.asyncio
    async def test_parent_creates_event(self, client, parent, notifier, as_user):
        """A parent should get 201 and one event.created notification."""
        response = await _create_event(client, as_user(parent))

        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["name"] == "Movie Night"
        assert data["owner_id"] == str(parent.id)
        assert [n.topic for n in notifier.delivered] == ["event.created"]

    @pytest.mark.asyncio
    async def test_owner_is_taken_from_principal_not_body(self, client, parent, child, as_user):
        """Owner and id supplied in the body should be ignored."""
        response = await _create_event(
            client,
            as_user(parent),
            owner_id=str(child.id),
            id=str(uuid4()),
        )

        assert response.status_code == 201
        assert response.json()["owner_id"] == str(parent.id)

    @pytest.mark.asyncio
    async def test_child_gets_403(self, client, child, notifier, as_user):
        """A child should get 403 and nothing should be dispatched."""
        response = await _create_event(client, as_user(child))

        assert response.status_code == 403
        data = response.json()
        assert data["error"] == "authorization_error"
        assert data["message"] == "Only parents can create events"
        assert notifier.delivered == []

    @pytest.mark.asyncio
    async def test_missing_name_is_422(self, client, parent, notifier, as_user):
        """A missing name should return 422 without dispatching."""
        response = await client.post(
            "/api/events", json={"start_at": START}, headers=as_user(parent)
        )

        assert response.status_code == 422
        assert response.json()["details"]["errors"] == [
            {"field": "name", "message": "can't be blank"}
        ]
        assert notifier.delivered == []

    @pytest.mark.asyncio
    async def test_malformed_start_is_422(self, client, parent, as_user):
        """An unparseable start_at should return the request validation body."""
        response = await _create_event(client, as_user(parent), start_at="next tuesday")

        assert response.status_code == 422
        data = response.json()
        assert data["message"] == "Request parameters are invalid"
        assert data["details"]["errors"][0]["field"] == "start_at"

    @pytest.mark.asyncio
    async def test_fetch_and_list(self, client, parent, guest, as_user):
        """Created events should be readable by the owner and refused to strangers."""
        created = (await _create_event(client, as_user(parent))).json()

        fetched = await client.get(f"/api/events/{created['id']}", headers=as_user(parent))
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Movie Night"

        listed = await client.get("/api/events", headers=as_user(parent))
        assert listed.json()["total_count"] == 1

        refused = await client.get(f"/api/events/{created['id']}", headers=as_user(guest))
        assert refused.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_event_is_404(self, client, parent, as_user):
        """Fetching a missing event should return 404 naming the resource."""
        response = await client.get(f"/api/events/{uuid4()}", headers=as_user(parent))
        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "event"


class TestInvitationsAPI:

    @pytest.mark.asyncio
    async def test_invite_then_accept(self, client, parent, child, notifier, as_user):
        """Issue then accept should succeed once and conflict the second time."""
        event = (await _create_event(client, as_user(parent))).json()

        issued = await client.post(
            f"/api/events/{event['id']}/invitations",
            json={"user_id": str(child.id)},
            headers=as_user(parent),
        )
        assert issued.status_code == 201
        invitation = issued.json()
        assert invitation["status"] == "issued"

        accepted = await client.post(
            f"/api/invitations/{invitation['id']}/accept",
            headers=as_user(child),
        )
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"
        assert accepted.json()["accepted_at"] is not None

        assert [n.topic for n in notifier.delivered] == [
            "event.created",
            "invitation.issued",
            "invitation.accepted",
        ]

        again = await client.post(
            f"/api/invitations/{invitation['id']}/accept",
            headers=as_user(child),
        )
        assert again.status_code == 409
        assert again.json()["error"] == "invalid_state"
        assert again.json()["details"] == {"current_state": "accepted"}

    @pytest.mark.asyncio
    async def test_duplicate_invitation_is_409(self, client, parent, child, as_user):
        """Inviting the same user twice should return 409."""
        event = (await _create_event(client, as_user(parent))).json()
        url = f"/api/events/{event['id']}/invitations"

        await client.post(url, json={"user_id": str(child.id)}, headers=as_user(parent))
        response = await client.post(url, json={"user_id": str(child.id)}, headers=as_user(parent))

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_non_owner_invite_is_403(self, client, parent, child, guest, as_user):
        """Only the event owner may invite."""
        event = (await _create_event(client, as_user(parent))).json()
        response = await client.post(
            f"/api/events/{event['id']}/invitations",
            json={"user_id": str(guest.id)},
            headers=as_user(child),
        )
        assert response.status_code == 403


class TestDispatchPolicyAPI:

    @pytest.mark.asyncio
    async def test_best_effort_returns_201(self, client, parent, failing_notifier, as_user):
        """A delivery failure should not change the 201 in best-effort mode."""
        from gatherly.main import app

        app.dependency_overrides[get_notifier] = lambda: failing_notifier
        response = await _create_event(client, as_user(parent))

        assert response.status_code == 201
        assert failing_notifier.attempts == 1

    @pytest.mark.asyncio
    async def test_strict_returns_502_and_keeps_event(
        self, client, parent, strict_failing_notifier, as_user
    ):
        """A strict delivery failure should return 502 while the event stays committed."""
        from gatherly.main import app

        app.dependency_overrides[get_notifier] = lambda: strict_failing_notifier
        response = await _create_event(client, as_user(parent))

        assert response.status_code == 502
        assert response.json()["error"] == "notification_error"

        listed = await client.get("/api/events", headers=as_user(parent))
        assert listed.json()["total_count"] == 1

    @pytest.mark.asyncio
    async def test_strict_open_circuit_returns_503(
        self, client, parent, strict_failing_notifier, as_user
    ):
        """An open circuit under strict dispatch should return 503 with Retry-After."""
        from gatherly.main import app

        strict_failing_notifier.error = CircuitBreakerOpenError(recovery_time=30)
        app.dependency_overrides[get_notifier] = lambda: strict_failing_notifier
        response = await _create_event(client, as_user(parent))

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"


class TestCrossCutting:

    @pytest.mark.asyncio
    async def test_request_id_round_trip(self, client, child, as_user):
        """A supplied X-Request-ID should come back in headers and error body."""
        headers = {**as_user(child), "X-Request-ID": "trace-42"}
        response = await _create_event(client, headers)

        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.json()["request_id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_generated_request_id(self, client):
        """Requests without an id should get a generated 8-character one."""
        response = await client.get("/api/events")
        rid = response.headers["X-Request-ID"]
        assert len(rid) == 8
        assert response.json()["request_id"] == rid

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic_500(self, client, parent, as_user):
        """Unhandled errors should return a generic 500 without internals."""
        from gatherly.main import app

        def broken_notifier():
            raise RuntimeError("notifier wiring exploded at /srv/secret")

        app.dependency_overrides[get_notifier] = broken_notifier
        response = await _create_event(client, as_user(parent))

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "internal_server_error"
        assert "secret" not in data["message"]

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Health check should report database and notifier as available."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["notifier"] == "available"
