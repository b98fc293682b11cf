"""
Gatherly Backend: RegisterUser Service
========================================

What:  Creates a household member from the permitted registration params.
Who:   Called by POST /api/users.

Steps: _build → _persist (ValidationError, ConflictError on a taken e-mail).
No side effect is dispatched.
"""

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.exceptions import ConflictError
from gatherly.models.user import ROLE_GUEST, User
from gatherly.schemas.user import UserParams
from gatherly.services.base import ApplicationService, save

DUPLICATE_MESSAGE = "A user with this e-mail address already exists"


@dataclass(frozen=True, kw_only=True, eq=False)
class RegisterUser(ApplicationService):
    db: AsyncSession
    params: UserParams

    async def __call__(self) -> User:
        user = self._build()
        await self._persist(user)
        return user

    def _build(self) -> User:
        return User(
            name=self.params.name.strip() if self.params.name else self.params.name,
            email=self.params.email.strip().lower() if self.params.email else self.params.email,
            role=(self.params.role or ROLE_GUEST).strip().lower(),
        )

    async def _persist(self, user: User) -> None:
        if user.email:
            taken = await self.db.execute(
                select(User.id).where(func.lower(User.email) == user.email)
            )
            if taken.scalar_one_or_none() is not None:
                raise ConflictError(message=DUPLICATE_MESSAGE, context={"field": "email"})
        await save(self.db, user, "User", conflict_message=DUPLICATE_MESSAGE)
