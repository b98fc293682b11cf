"""
Gatherly Backend: User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table, the actor entity of every service.
How:   `role` gates privileged operations; `is_parent()` is the check used by
       the create-event authorize step.
Who:   Loaded by the principal dependency; referenced by events (owner) and
       invitations (invitee).
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gatherly.database import Base

if TYPE_CHECKING:
    from gatherly.models.event import Event
    from gatherly.models.invitation import Invitation


ROLE_PARENT = "parent"
ROLE_CHILD = "child"
ROLE_GUEST = "guest"
ROLES = (ROLE_PARENT, ROLE_CHILD, ROLE_GUEST)


class User(Base):
    """A household member (or guest) acting on the API."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ROLE_GUEST,
        server_default=text(f"'{ROLE_GUEST}'"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    events: Mapped[List["Event"]] = relationship(back_populates="owner")
    invitations: Mapped[List["Invitation"]] = relationship(back_populates="user")

    def is_parent(self) -> bool:
        return self.role == ROLE_PARENT

    def validate(self) -> List[Dict[str, str]]:
        """Field-level validation rules; empty list means valid."""
        errors = []
        if not (self.name or "").strip():
            errors.append({"field": "name", "message": "can't be blank"})
        email = (self.email or "").strip()
        if not email:
            errors.append({"field": "email", "message": "can't be blank"})
        elif "@" not in email or email.startswith("@") or email.endswith("@"):
            errors.append({"field": "email", "message": "is not a valid address"})
        if self.role not in ROLES:
            errors.append(
                {"field": "role", "message": f"must be one of: {', '.join(ROLES)}"}
            )
        return errors

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role='{self.role}')>"
