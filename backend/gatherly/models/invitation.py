"""
Gatherly Backend: Invitation SQLAlchemy Model
===============================================

What:  ORM model for the `invitations` table, relating a User to an Event.
How:   Two services mutate it: IssueInvitation creates it (status 'issued'),
       AcceptInvitation transitions it to 'accepted'.

Status transitions:
    issued → accepted
    Any other transition raises InvalidStateError in the service layer.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gatherly.database import Base

if TYPE_CHECKING:
    from gatherly.models.event import Event
    from gatherly.models.user import User


STATUS_ISSUED = "issued"
STATUS_ACCEPTED = "accepted"
STATUSES = (STATUS_ISSUED, STATUS_ACCEPTED)


class Invitation(Base):
    """An invitation of one user to one event."""

    __tablename__ = "invitations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=STATUS_ISSUED,
        server_default=text(f"'{STATUS_ISSUED}'"),
    )
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    accepted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    event: Mapped["Event"] = relationship(back_populates="invitations")
    user: Mapped["User"] = relationship(back_populates="invitations")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_invitations_event_user"),
        Index("idx_invitations_user", "user_id"),
    )

    def is_issued(self) -> bool:
        return self.status == STATUS_ISSUED

    def accept(self, at: Optional[datetime] = None) -> None:
        """Moves the invitation to 'accepted'. Callers check is_issued() first."""
        self.status = STATUS_ACCEPTED
        self.accepted_at = at or datetime.now(timezone.utc)

    def validate(self) -> List[Dict[str, str]]:
        errors = []
        if self.event_id is None:
            errors.append({"field": "event", "message": "must exist"})
        if self.user_id is None:
            errors.append({"field": "user", "message": "must exist"})
        if self.status not in STATUSES:
            errors.append(
                {"field": "status", "message": f"must be one of: {', '.join(STATUSES)}"}
            )
        if self.status == STATUS_ACCEPTED and self.accepted_at is None:
            errors.append({"field": "accepted_at", "message": "can't be blank once accepted"})
        return errors

    def __repr__(self) -> str:
        return (
            f"<Invitation(id={self.id}, event_id={self.event_id}, "
            f"user_id={self.user_id}, status='{self.status}')>"
        )
