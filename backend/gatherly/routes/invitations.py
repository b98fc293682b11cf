"""
Gatherly Backend: Invitation Route Handlers
=============================================

What:  Issue (POST /api/events/{event_id}/invitations) and accept
       (POST /api/invitations/{invitation_id}/accept) invitations.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.api.principal import get_current_user
from gatherly.database import get_db_session
from gatherly.models.user import User
from gatherly.schemas.common import ErrorResponse
from gatherly.schemas.invitation import InvitationParams, InvitationResponse
from gatherly.services.accept_invitation import AcceptInvitation
from gatherly.services.issue_invitation import IssueInvitation
from gatherly.services.notifications import get_notifier
from gatherly.services.notifier_base import Notifier

router = APIRouter(prefix="/api", tags=["Invitations"])


@router.post(
    "/events/{event_id}/invitations",
    status_code=201,
    response_model=InvitationResponse,
    responses={
        403: {"description": "Acting user does not own the event", "model": ErrorResponse},
        404: {"description": "Event or invitee not found", "model": ErrorResponse},
        409: {"description": "User already invited", "model": ErrorResponse},
    },
    summary="Invite a user to an event",
)
async def issue_invitation(
    event_id: UUID,
    params: InvitationParams,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    notifier: Notifier = Depends(get_notifier),
) -> InvitationResponse:
    invitation = await IssueInvitation.call(
        db=db,
        notifier=notifier,
        actor=current_user,
        event_id=event_id,
        invitee_id=params.user_id,
    )
    return InvitationResponse.model_validate(invitation)


@router.post(
    "/invitations/{invitation_id}/accept",
    response_model=InvitationResponse,
    responses={
        403: {"description": "Acting user is not the invitee", "model": ErrorResponse},
        404: {"description": "Invitation not found", "model": ErrorResponse},
        409: {"description": "Invitation is not pending", "model": ErrorResponse},
    },
    summary="Accept an invitation",
)
async def accept_invitation(
    invitation_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    notifier: Notifier = Depends(get_notifier),
) -> InvitationResponse:
    invitation = await AcceptInvitation.call(
        db=db,
        notifier=notifier,
        actor=current_user,
        invitation_id=invitation_id,
    )
    return InvitationResponse.model_validate(invitation)
