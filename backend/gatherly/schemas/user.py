"""
Gatherly Backend: User Schemas
================================

What:  Permitted parameters for registration and the user response body.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserParams(BaseModel):
    """
    Permitted parameters for POST /api/users.

    Unknown fields (id, created_at, ...) are dropped. Presence and format are
    checked by User.validate() inside the persist step.
    """
    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Unique e-mail address")
    role: Optional[str] = Field(default=None, description="parent, child or guest")

    model_config = {"extra": "ignore"}


class UserResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}
