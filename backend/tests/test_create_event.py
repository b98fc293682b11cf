"""
Gatherly Backend: CreateEvent Service Tests
=============================================

What:  CreateEvent against a real (in-memory SQLite) session.

What we test:
    ✅ Parent creates an event; it is persisted and announced exactly once
    ✅ Steps run in order: authorize → build → persist → dispatch
    ✅ Non-parents are rejected before anything is built or saved
    ✅ Invalid events abort in persist; nothing is saved or dispatched
    ✅ Dispatch failure: best-effort keeps the event, strict propagates
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from gatherly.exceptions import AuthorizationError, NotificationError, ValidationError
from gatherly.models.event import Event
from gatherly.schemas.event import EventParams
from gatherly.services.create_event import CreateEvent

START = datetime(2026, 7, 4, 15, 0, tzinfo=timezone.utc)


async def _event_count(db_session) -> int:
    return (await db_session.execute(select(func.count(Event.id)))).scalar_one()


class TestCreateEventSuccess:

    @pytest.mark.asyncio
    async def test_parent_creates_event(self, db_session, notifier, parent):
        """Parent should get a persisted event with a trimmed name."""
        event = await CreateEvent.call(
            db=db_session,
            notifier=notifier,
            actor=parent,
            params=EventParams(name="  Birthday  ", start_at=START, end_at=START + timedelta(hours=3)),
        )

        assert event.id is not None
        assert event.name == "Birthday"
        assert event.owner_id == parent.id
        assert await _event_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_dispatches_event_created_once(self, db_session, notifier, parent):
        """Exactly one event.created notification should go to the owner."""
        event = await CreateEvent.call(
            db=db_session,
            notifier=notifier,
            actor=parent,
            params=EventParams(name="Picnic", start_at=START),
        )

        assert len(notifier.delivered) == 1
        sent = notifier.delivered[0]
        assert sent.topic == "event.created"
        assert sent.subject_id == event.id
        assert sent.recipient_ids == [parent.id]
        assert sent.payload["name"] == "Picnic"

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, db_session, notifier, parent, monkeypatch):
        """Steps should run authorize, build, persist, dispatch."""
        calls = []

        def spy(name, fn):
            def wrapper(self, *args):
                calls.append(name)
                return fn(self, *args)
            return wrapper

        def async_spy(name, fn):
            async def wrapper(self, *args):
                calls.append(name)
                return await fn(self, *args)
            return wrapper

        monkeypatch.setattr(CreateEvent, "_authorize", spy("authorize", CreateEvent._authorize))
        monkeypatch.setattr(CreateEvent, "_build", spy("build", CreateEvent._build))
        monkeypatch.setattr(CreateEvent, "_persist", async_spy("persist", CreateEvent._persist))
        monkeypatch.setattr(CreateEvent, "_dispatch", async_spy("dispatch", CreateEvent._dispatch))

        await CreateEvent.call(
            db=db_session,
            notifier=notifier,
            actor=parent,
            params=EventParams(name="Picnic", start_at=START),
        )

        assert calls == ["authorize", "build", "persist", "dispatch"]


class TestCreateEventAuthorization:

    @pytest.mark.asyncio
    async def test_child_cannot_create(self, db_session, notifier, child):
        """A child should be refused and nothing persisted or dispatched."""
        with pytest.raises(AuthorizationError, match="Only parents"):
            await CreateEvent.call(
                db=db_session,
                notifier=notifier,
                actor=child,
                params=EventParams(name="Sleepover", start_at=START),
            )

        assert await _event_count(db_session) == 0
        assert notifier.delivered == []

    @pytest.mark.asyncio
    async def test_authorization_runs_before_validation(self, db_session, notifier, guest):
        """Privilege check should win over invalid params."""
        with pytest.raises(AuthorizationError):
            await CreateEvent.call(
                db=db_session,
                notifier=notifier,
                actor=guest,
                params=EventParams(),
            )


class TestCreateEventValidation:

    @pytest.mark.asyncio
    async def test_missing_name_aborts_without_dispatch(self, db_session, notifier, parent):
        """Missing name should abort before persist and dispatch."""
        with pytest.raises(ValidationError) as exc_info:
            await CreateEvent.call(
                db=db_session,
                notifier=notifier,
                actor=parent,
                params=EventParams(start_at=START),
            )

        assert {"field": "name", "message": "can't be blank"} in exc_info.value.errors
        assert await _event_count(db_session) == 0
        assert notifier.delivered == []

    @pytest.mark.asyncio
    async def test_missing_start_reported(self, db_session, notifier, parent):
        """Missing start_at should be the only reported field."""
        with pytest.raises(ValidationError) as exc_info:
            await CreateEvent.call(
                db=db_session,
                notifier=notifier,
                actor=parent,
                params=EventParams(name="Picnic"),
            )
        assert [e["field"] for e in exc_info.value.errors] == ["start_at"]

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, db_session, notifier, parent):
        """end_at before start_at should be rejected."""
        with pytest.raises(ValidationError, match="end_at must not be before start_at"):
            await CreateEvent.call(
                db=db_session,
                notifier=notifier,
                actor=parent,
                params=EventParams(name="Picnic", start_at=START, end_at=START - timedelta(hours=1)),
            )

    @pytest.mark.asyncio
    async def test_name_too_long_rejected(self, db_session, notifier, parent):
        """Names over the column limit should be rejected."""
        with pytest.raises(ValidationError, match="too long"):
            await CreateEvent.call(
                db=db_session,
                notifier=notifier,
                actor=parent,
                params=EventParams(name="x" * 201, start_at=START),
            )


class TestCreateEventDispatchFailure:

    @pytest.mark.asyncio
    async def test_best_effort_returns_persisted_event(self, db_session, failing_notifier, parent):
        """Delivery failure should still return the persisted event."""
        event = await CreateEvent.call(
            db=db_session,
            notifier=failing_notifier,
            actor=parent,
            params=EventParams(name="Picnic", start_at=START),
        )

        assert event.id is not None
        assert failing_notifier.attempts == 1
        assert await _event_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_strict_propagates_but_keeps_event(
        self, db_session, strict_failing_notifier, parent
    ):
        """Strict delivery failure should raise while the event stays committed."""
        with pytest.raises(NotificationError):
            await CreateEvent.call(
                db=db_session,
                notifier=strict_failing_notifier,
                actor=parent,
                params=EventParams(name="Picnic", start_at=START),
            )

        assert await _event_count(db_session) == 1
