"""
Gatherly Backend: Event SQLAlchemy Model
==========================================

What:  ORM model representing the `events` table.
How:   Owned by a User (many-to-one), has many Invitations (one-to-many).
Who:   Built and persisted by CreateEvent; read by FetchEvent and ListEvents.

Invariant:
    name and start_at are present on every persisted row. `validate()` checks
    them before flush and the NOT NULL columns back it up in the store.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gatherly.database import Base

if TYPE_CHECKING:
    from gatherly.models.invitation import Invitation
    from gatherly.models.user import User


NAME_MAX_LENGTH = 200


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Event(Base):
    """
    A scheduled household event.

    Lifecycle:
        Built in memory by CreateEvent, validated, flushed and committed.
        Invitations are attached afterwards by IssueInvitation.
    """

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    owner: Mapped["User"] = relationship(back_populates="events")
    invitations: Mapped[List["Invitation"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
    )

    # Listing queries filter by owner and order by start time
    __table_args__ = (
        Index("idx_events_owner_start", "owner_id", "start_at"),
    )

    def validate(self) -> List[Dict[str, str]]:
        """Field-level validation rules; empty list means valid."""
        errors = []
        name = (self.name or "").strip()
        if not name:
            errors.append({"field": "name", "message": "can't be blank"})
        elif len(name) > NAME_MAX_LENGTH:
            errors.append(
                {
                    "field": "name",
                    "message": f"is too long (maximum is {NAME_MAX_LENGTH} characters)",
                }
            )
        if self.start_at is None:
            errors.append({"field": "start_at", "message": "can't be blank"})
        if (
            self.start_at is not None
            and self.end_at is not None
            and as_utc(self.end_at) < as_utc(self.start_at)
        ):
            errors.append({"field": "end_at", "message": "must not be before start_at"})
        if self.owner_id is None:
            errors.append({"field": "owner", "message": "must exist"})
        return errors

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name='{self.name}', start_at='{self.start_at}')>"
