"""
Gatherly Backend: Acting Principal Dependency
===============================================

What:  Resolves the acting user for a request.
How:   Reads the user id from the principal header (X-User-ID by default)
       and loads the User with the request's own session, so services receive
       an entity bound to the session they write with.
Who:   Injected into every route that invokes a service on behalf of a user.

Token or session authentication is an upstream concern; whatever performs it
is expected to set the header.
"""

import uuid

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.config import settings
from gatherly.database import get_db_session
from gatherly.exceptions import AuthenticationError
from gatherly.models.user import User


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Raises:
        AuthenticationError: header missing, not a UUID, or no such user.
    """
    raw = request.headers.get(settings.principal_header, "").strip()
    if not raw:
        raise AuthenticationError(
            message=f"Missing {settings.principal_header} header",
        )
    try:
        user_id = uuid.UUID(raw)
    except ValueError:
        raise AuthenticationError(
            message=f"Malformed {settings.principal_header} header",
        )

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError(message="Unknown user")

    request.state.user_id = str(user.id)
    return user
