"""
Gatherly Backend: CreateEvent Service
=======================================

What:  Creates an event owned by the acting user and announces it.
Who:   Called by POST /api/events.

Steps (in order, each exactly once):
    1. _authorize  → AuthorizationError unless the actor is a parent
    2. _build      → in-memory Event from the permitted params
    3. _persist    → validate, flush, commit (ValidationError aborts here)
    4. _dispatch   → "event.created" to the notifier (best-effort by default)
    5. return the persisted Event
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.exceptions import AuthorizationError
from gatherly.models.event import Event
from gatherly.models.user import User
from gatherly.schemas.event import EventParams, EventResponse
from gatherly.services.base import ApplicationService, dispatch, save
from gatherly.services.notifier_base import Notification, Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True, eq=False)
class CreateEvent(ApplicationService):
    db: AsyncSession
    notifier: Notifier
    actor: User
    params: EventParams

    async def __call__(self) -> Event:
        self._authorize()
        event = self._build()
        await self._persist(event)
        await self._dispatch(event)
        return event

    def _authorize(self) -> None:
        if not self.actor.is_parent():
            raise AuthorizationError(
                message="Only parents can create events",
                context={"actor_id": str(self.actor.id), "role": self.actor.role},
            )

    def _build(self) -> Event:
        name = self.params.name.strip() if self.params.name else self.params.name
        return Event(
            name=name,
            start_at=self.params.start_at,
            end_at=self.params.end_at,
            owner_id=self.actor.id,
        )

    async def _persist(self, event: Event) -> None:
        await save(self.db, event, "Event")

    async def _dispatch(self, event: Event) -> None:
        await dispatch(
            self.notifier,
            Notification(
                topic="event.created",
                subject_id=event.id,
                recipient_ids=[event.owner_id],
                payload=EventResponse.model_validate(event).model_dump(mode="json"),
            ),
        )
