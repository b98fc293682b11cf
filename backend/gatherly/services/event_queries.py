"""
Gatherly Backend: Event Read Services
=======================================

What:  Read-side operation objects for events.
How:   Same contract as the writing services (`call` with named inputs),
       without persist or dispatch steps.

    FetchEvent: load → authorize (owner or invitee)
    ListEvents: events the actor owns or is invited to, by start time
"""

import uuid
from dataclasses import dataclass
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.exceptions import AuthorizationError, NotFoundError
from gatherly.models.event import Event
from gatherly.models.invitation import Invitation
from gatherly.models.user import User
from gatherly.services.base import ApplicationService


def _invited_event_ids(user_id: uuid.UUID):
    return select(Invitation.event_id).where(Invitation.user_id == user_id)


@dataclass(frozen=True, kw_only=True, eq=False)
class FetchEvent(ApplicationService):
    db: AsyncSession
    actor: User
    event_id: uuid.UUID

    async def __call__(self) -> Event:
        event = await self._load()
        await self._authorize(event)
        return event

    async def _load(self) -> Event:
        event = await self.db.get(Event, self.event_id)
        if event is None:
            raise NotFoundError(resource="event", resource_id=str(self.event_id))
        return event

    async def _authorize(self, event: Event) -> None:
        if event.owner_id == self.actor.id:
            return
        invited = await self.db.execute(
            select(Invitation.id).where(
                Invitation.event_id == event.id,
                Invitation.user_id == self.actor.id,
            )
        )
        if invited.scalar_one_or_none() is None:
            raise AuthorizationError(
                message="You are not invited to this event",
                context={"actor_id": str(self.actor.id), "event_id": str(event.id)},
            )


@dataclass(frozen=True, kw_only=True, eq=False)
class ListEvents(ApplicationService):
    db: AsyncSession
    actor: User

    async def __call__(self) -> List[Event]:
        result = await self.db.execute(
            select(Event)
            .where(
                or_(
                    Event.owner_id == self.actor.id,
                    Event.id.in_(_invited_event_ids(self.actor.id)),
                )
            )
            .order_by(Event.start_at.asc(), Event.created_at.asc())
        )
        return list(result.scalars().all())
