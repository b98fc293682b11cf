"""
Gatherly Backend: AcceptInvitation Service
============================================

What:  Transitions an invitation from 'issued' to 'accepted'.
Who:   Called by POST /api/invitations/{invitation_id}/accept.

Steps:
    1. _load_invitation → NotFoundError for an unknown invitation
    2. _authorize       → AuthorizationError unless the actor is the invitee
    3. _transition      → InvalidStateError unless the status is 'issued'
    4. _persist         → validate, flush, commit
    5. _dispatch        → "invitation.accepted" to the event owner
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.exceptions import AuthorizationError, InvalidStateError, NotFoundError
from gatherly.models.event import Event
from gatherly.models.invitation import Invitation
from gatherly.models.user import User
from gatherly.schemas.invitation import InvitationResponse
from gatherly.services.base import ApplicationService, dispatch, save
from gatherly.services.notifier_base import Notification, Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True, eq=False)
class AcceptInvitation(ApplicationService):
    db: AsyncSession
    notifier: Notifier
    actor: User
    invitation_id: uuid.UUID

    async def __call__(self) -> Invitation:
        invitation, event = await self._load_invitation()
        self._authorize(invitation)
        self._transition(invitation)
        await self._persist(invitation)
        await self._dispatch(invitation, event)
        return invitation

    async def _load_invitation(self) -> Tuple[Invitation, Event]:
        result = await self.db.execute(
            select(Invitation, Event)
            .join(Event, Invitation.event_id == Event.id)
            .where(Invitation.id == self.invitation_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(resource="invitation", resource_id=str(self.invitation_id))
        return row[0], row[1]

    def _authorize(self, invitation: Invitation) -> None:
        if invitation.user_id != self.actor.id:
            raise AuthorizationError(
                message="Only the invited member can accept this invitation",
                context={"actor_id": str(self.actor.id), "invitation_id": str(invitation.id)},
            )

    def _transition(self, invitation: Invitation) -> None:
        if not invitation.is_issued():
            raise InvalidStateError(
                message=f"Invitation is already {invitation.status}",
                current_state=invitation.status,
            )
        invitation.accept()

    async def _persist(self, invitation: Invitation) -> None:
        await save(self.db, invitation, "Invitation")

    async def _dispatch(self, invitation: Invitation, event: Event) -> None:
        payload = InvitationResponse.model_validate(invitation).model_dump(mode="json")
        payload["event_name"] = event.name
        await dispatch(
            self.notifier,
            Notification(
                topic="invitation.accepted",
                subject_id=invitation.id,
                recipient_ids=[event.owner_id],
                payload=payload,
            ),
        )
