"""
Gatherly Backend: Invitation Schemas
======================================
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class InvitationParams(BaseModel):
    """Permitted parameters for POST /api/events/{event_id}/invitations."""
    user_id: Optional[uuid.UUID] = Field(default=None, description="Invitee user id")

    model_config = {"extra": "ignore"}


class InvitationResponse(BaseModel):
    id: uuid.UUID = Field(description="Unique invitation identifier")
    event_id: uuid.UUID = Field(description="Event the user is invited to")
    user_id: uuid.UUID = Field(description="Invited user")
    status: str = Field(description="issued or accepted")
    issued_at: datetime = Field(description="When the invitation was issued")
    accepted_at: Optional[datetime] = Field(
        default=None,
        description="When the invitation was accepted (null while issued)",
    )

    model_config = {"from_attributes": True}
