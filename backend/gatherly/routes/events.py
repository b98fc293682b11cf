"""
Gatherly Backend: Event Route Handlers
========================================

What:  POST /api/events, GET /api/events, GET /api/events/{event_id}.
How:   Each handler takes the permitted params and the acting principal,
       makes exactly one service call and serializes the returned entity.
       Errors are left to the central handlers in gatherly.api.error_handlers.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.api.principal import get_current_user
from gatherly.database import get_db_session
from gatherly.models.user import User
from gatherly.schemas.common import ErrorResponse
from gatherly.schemas.event import EventListResponse, EventParams, EventResponse
from gatherly.services.create_event import CreateEvent
from gatherly.services.event_queries import FetchEvent, ListEvents
from gatherly.services.notifications import get_notifier
from gatherly.services.notifier_base import Notifier

router = APIRouter(prefix="/api", tags=["Events"])


@router.post(
    "/events",
    status_code=201,
    response_model=EventResponse,
    responses={
        401: {"description": "No acting user", "model": ErrorResponse},
        403: {"description": "Acting user is not a parent", "model": ErrorResponse},
        422: {"description": "Event is invalid", "model": ErrorResponse},
    },
    summary="Create an event",
)
async def create_event(
    params: EventParams,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    notifier: Notifier = Depends(get_notifier),
) -> EventResponse:
    """
    Create an event owned by the acting user.

    Only `name`, `start_at` and `end_at` are read from the body; any other
    field (owner_id, id, ...) is ignored.
    """
    event = await CreateEvent.call(
        db=db,
        notifier=notifier,
        actor=current_user,
        params=params,
    )
    return EventResponse.model_validate(event)


@router.get(
    "/events",
    response_model=EventListResponse,
    responses={401: {"description": "No acting user", "model": ErrorResponse}},
    summary="List events the acting user owns or is invited to",
)
async def list_events(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EventListResponse:
    events = await ListEvents.call(db=db, actor=current_user)
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total_count=len(events),
    )


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    responses={
        403: {"description": "Not the owner or an invitee", "model": ErrorResponse},
        404: {"description": "Event not found", "model": ErrorResponse},
    },
    summary="Get a single event",
)
async def get_event(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EventResponse:
    event = await FetchEvent.call(db=db, actor=current_user, event_id=event_id)
    return EventResponse.model_validate(event)
