"""
Gatherly Backend: Event Request/Response Schemas
==================================================

What:  Pydantic models defining the events API contract.
How:   `EventParams` is the permitted-parameter whitelist: it coerces types
       and silently drops fields it does not name (owner_id, id, ...). It
       does not require any field; required-ness belongs to Event.validate().
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class EventParams(BaseModel):
    """Permitted parameters for POST /api/events."""
    name: Optional[str] = Field(default=None, description="Event name (required by the model)")
    start_at: Optional[datetime] = Field(
        default=None,
        description="Start time, ISO 8601 (required by the model)",
    )
    end_at: Optional[datetime] = Field(default=None, description="End time, ISO 8601")

    model_config = {"extra": "ignore"}


class EventResponse(BaseModel):
    """Full representation of a persisted event."""
    id: uuid.UUID = Field(description="Unique event identifier")
    name: str = Field(description="Event name")
    start_at: datetime = Field(description="Start time")
    end_at: Optional[datetime] = Field(default=None, description="End time (optional)")
    owner_id: uuid.UUID = Field(description="User who created the event")
    created_at: datetime = Field(description="When the event was created (UTC)")

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    """Events the acting user owns or is invited to, ordered by start time."""
    events: List[EventResponse] = Field(description="Visible events")
    total_count: int = Field(description="Number of events returned")
