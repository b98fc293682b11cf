# Services package init
"""
Gatherly Backend: Services Layer
==================================

What:  Business transactions, one operation object per transaction.
How:   Each service is a frozen keyword-only dataclass whose fields are its
       inputs. `Service.call(**inputs)` is the single entry point; it builds a
       fresh instance and runs its private steps in order.

Service Inventory:
    - ApplicationService (base.py): the `call` contract, shared persist/dispatch
    - CreateEvent:       authorize → build → persist → dispatch
    - IssueInvitation:   load → authorize → build → persist → dispatch
    - AcceptInvitation:  load → authorize → transition → persist → dispatch
    - RegisterUser:      build → persist
    - FetchEvent / ListEvents: read-side operations
    - Notifier (notifier_base.py), WebhookNotifier: notification collaborator
"""

from gatherly.services.accept_invitation import AcceptInvitation
from gatherly.services.base import ApplicationService
from gatherly.services.create_event import CreateEvent
from gatherly.services.event_queries import FetchEvent, ListEvents
from gatherly.services.issue_invitation import IssueInvitation
from gatherly.services.register_user import RegisterUser

__all__ = [
    "AcceptInvitation",
    "ApplicationService",
    "CreateEvent",
    "FetchEvent",
    "IssueInvitation",
    "ListEvents",
    "RegisterUser",
]
