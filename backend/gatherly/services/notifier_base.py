"""
Gatherly Backend: Notifier Interface
======================================

What:  The notification collaborator contract and its in-process default.
How:   Services build a `Notification` and hand it to whatever `Notifier` they
       were constructed with. Concrete notifiers decide the transport.
Who:   Called by the dispatch step of CreateEvent, IssueInvitation and
       AcceptInvitation.

Implementations:
    - LogNotifier:     logs and keeps a bounded outbox (default, and in tests)
    - WebhookNotifier: POSTs JSON to a configured URL (webhook_notifier.py)
"""

import logging
import uuid
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    """
    A message about something that happened to an entity.

    topic:         "event.created", "invitation.issued", "invitation.accepted"
    subject_id:    id of the entity the notification is about
    recipient_ids: users who should hear about it
    payload:       JSON-safe serialization of the entity
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    topic: str
    subject_id: uuid.UUID
    recipient_ids: List[uuid.UUID] = Field(default_factory=list)
    payload: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier(ABC):
    """
    Abstract notification collaborator.

    Contract:
        - notify() returns once the notification is accepted for delivery
        - Transport failures surface as NotificationError or
          CircuitBreakerOpenError, never as transport-specific exceptions

    `strict` is the dispatch policy services apply to this notifier:
    False logs and swallows delivery failures, True lets them propagate.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    @abstractmethod
    async def notify(self, notification: Notification) -> None:
        """
        Deliver one notification.

        Raises:
            NotificationError: delivery failed after all retries
            CircuitBreakerOpenError: delivery is suspended
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the notifier can currently deliver."""
        ...

    async def aclose(self) -> None:
        """Release transport resources. Called on application shutdown."""
        return None


class LogNotifier(Notifier):
    """
    Notifier that writes notifications to the log.

    Keeps the last `outbox_size` notifications in memory so operators (and
    tests) can inspect what was dispatched.
    """

    def __init__(self, outbox_size: int = 100, strict: bool = False):
        super().__init__(strict=strict)
        self._outbox: Deque[Notification] = deque(maxlen=outbox_size)

    @property
    def delivered(self) -> List[Notification]:
        return list(self._outbox)

    async def notify(self, notification: Notification) -> None:
        self._outbox.append(notification)
        logger.info(
            "Notification %s about %s for %d recipient(s)",
            notification.topic,
            notification.subject_id,
            len(notification.recipient_ids),
        )

    async def health_check(self) -> bool:
        return True
