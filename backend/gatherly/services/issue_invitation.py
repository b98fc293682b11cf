"""
Gatherly Backend: IssueInvitation Service
===========================================

What:  Invites a user to an event the actor owns.
Who:   Called by POST /api/events/{event_id}/invitations.

Steps:
    1. _load_event    → NotFoundError for an unknown event
    2. _authorize     → AuthorizationError unless the actor owns the event
    3. _load_invitee  → ValidationError without a user id, NotFoundError for
                        an unknown user, ValidationError for the owner
    4. _build         → Invitation in status 'issued'
    5. _persist       → ConflictError when the user is already invited
    6. _dispatch      → "invitation.issued" to the invitee
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from gatherly.models.event import Event
from gatherly.models.invitation import STATUS_ISSUED, Invitation
from gatherly.models.user import User
from gatherly.schemas.invitation import InvitationResponse
from gatherly.services.base import ApplicationService, dispatch, save
from gatherly.services.notifier_base import Notification, Notifier

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "This user has already been invited to the event"


@dataclass(frozen=True, kw_only=True, eq=False)
class IssueInvitation(ApplicationService):
    db: AsyncSession
    notifier: Notifier
    actor: User
    event_id: uuid.UUID
    invitee_id: Optional[uuid.UUID]

    async def __call__(self) -> Invitation:
        event = await self._load_event()
        self._authorize(event)
        invitee = await self._load_invitee(event)
        invitation = self._build(event, invitee)
        await self._persist(invitation)
        await self._dispatch(event, invitation)
        return invitation

    async def _load_event(self) -> Event:
        event = await self.db.get(Event, self.event_id)
        if event is None:
            raise NotFoundError(resource="event", resource_id=str(self.event_id))
        return event

    def _authorize(self, event: Event) -> None:
        if event.owner_id != self.actor.id:
            raise AuthorizationError(
                message="Only the event owner can invite members",
                context={"actor_id": str(self.actor.id), "event_id": str(event.id)},
            )

    async def _load_invitee(self, event: Event) -> User:
        if self.invitee_id is None:
            raise ValidationError.for_entity(
                "Invitation", [{"field": "user_id", "message": "can't be blank"}]
            )
        invitee = await self.db.get(User, self.invitee_id)
        if invitee is None:
            raise NotFoundError(resource="user", resource_id=str(self.invitee_id))
        if invitee.id == event.owner_id:
            raise ValidationError.for_entity(
                "Invitation", [{"field": "user_id", "message": "is the event owner"}]
            )
        return invitee

    def _build(self, event: Event, invitee: User) -> Invitation:
        return Invitation(event_id=event.id, user_id=invitee.id, status=STATUS_ISSUED)

    async def _persist(self, invitation: Invitation) -> None:
        existing = await self.db.execute(
            select(Invitation.id).where(
                Invitation.event_id == invitation.event_id,
                Invitation.user_id == invitation.user_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                message=DUPLICATE_MESSAGE,
                context={
                    "event_id": str(invitation.event_id),
                    "user_id": str(invitation.user_id),
                },
            )
        # The unique constraint still guards against a concurrent duplicate
        await save(self.db, invitation, "Invitation", conflict_message=DUPLICATE_MESSAGE)

    async def _dispatch(self, event: Event, invitation: Invitation) -> None:
        payload = InvitationResponse.model_validate(invitation).model_dump(mode="json")
        payload["event_name"] = event.name
        await dispatch(
            self.notifier,
            Notification(
                topic="invitation.issued",
                subject_id=invitation.id,
                recipient_ids=[invitation.user_id],
                payload=payload,
            ),
        )
