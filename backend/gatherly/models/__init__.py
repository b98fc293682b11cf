# Models package init
"""
Gatherly Backend: ORM Models
==============================

Importing this package registers every model with `Base.metadata`, which the
test suite (create_all) and Alembic (autogenerate) rely on.
"""

from gatherly.models.event import Event
from gatherly.models.invitation import Invitation
from gatherly.models.user import User

__all__ = ["Event", "Invitation", "User"]
