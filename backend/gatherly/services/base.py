"""
Gatherly Backend: Service Base Contract
=========================================

What:  The operation-object contract every service follows, plus the shared
       persist and dispatch steps.
How:   A service is a frozen, keyword-only dataclass whose fields are its
       inputs (dependencies included). `Service.call(**inputs)` builds a fresh
       instance and awaits it; the instance's `__call__` runs the service's
       named private steps in a fixed order.
Who:   Controllers call `SomeService.call(...)`; nothing else constructs
       services directly except tests.

Example:
    event = await CreateEvent.call(
        db=db,
        notifier=notifier,
        actor=current_user,
        params=params,
    )

Guarantees:
    - Inputs are keyword-only; `CreateEvent.call(db)` raises TypeError.
    - Every invocation gets its own instance; instances cannot be mutated
      after construction, so nothing leaks from one call into the next.
    - Errors raised inside a step propagate unchanged to the caller.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatherly.exceptions import (
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    NotificationError,
    ValidationError,
)
from gatherly.services.notifier_base import Notification, Notifier

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="ApplicationService")


class ApplicationService(ABC):
    """
    Base class for single-purpose operation objects.

    Subclasses are declared with
    `@dataclass(frozen=True, kw_only=True, eq=False)` and implement
    `async def __call__(self)`.
    """

    @classmethod
    async def call(cls: Type[S], **inputs: Any) -> Any:
        """Construct a fresh instance from named inputs and run it."""
        service = cls(**inputs)
        name = cls.__name__
        start_time = time.perf_counter()
        try:
            result = await service()
        except Exception as exc:
            logger.info(
                "%s failed after %.1fms: %s",
                name,
                (time.perf_counter() - start_time) * 1000,
                type(exc).__name__,
            )
            raise
        logger.info(
            "%s completed in %.1fms",
            name,
            (time.perf_counter() - start_time) * 1000,
        )
        return result

    @abstractmethod
    async def __call__(self) -> Any:
        """Run the service's steps in order and return the result."""
        ...


# ══════════════════════════════════════════════════════════════════════════
# Shared Steps
# ══════════════════════════════════════════════════════════════════════════

def _is_unique_violation(exc: IntegrityError) -> bool:
    """asyncpg reports SQLSTATE 23505; SQLite reports 'UNIQUE constraint failed'."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) == "23505":
        return True
    return "unique" in str(orig or exc).lower()


async def save(
    db: AsyncSession,
    entity: Any,
    label: str,
    conflict_message: Optional[str] = None,
) -> None:
    """
    Persist step shared by every writing service.

    Runs the model's validation rules, then flushes and commits. Any failure
    rolls the session back so no partial write survives, and the remaining
    steps of the calling service never run.

    Raises:
        ValidationError: entity.validate() reported errors, or the store
            rejected the row (NOT NULL, foreign key, check constraint).
        ConflictError:   the store reported a uniqueness violation.
        DatabaseError:   any other store failure.
    """
    errors = entity.validate()
    if errors:
        raise ValidationError.for_entity(label, errors)

    try:
        db.add(entity)
        await db.flush()
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if _is_unique_violation(e):
            raise ConflictError(
                message=conflict_message or f"{label} already exists",
                context={"entity": label},
            ) from e
        raise ValidationError(
            message=f"{label} violates a storage constraint",
            context={"entity": label, "original_error": type(e.orig).__name__},
        ) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to persist %s: %s", label, str(e), exc_info=True)
        raise DatabaseError(
            message=f"Could not save the {label.lower()}. Please try again.",
            context={"entity": label, "original_error": type(e).__name__},
        ) from e

    logger.info("%s %s persisted", label, getattr(entity, "id", None))


async def dispatch(notifier: Notifier, notification: Notification) -> bool:
    """
    Dispatch step shared by every service with a side effect.

    The entity is already committed when this runs, so a failed delivery
    never rolls it back. The policy belongs to the notifier the service was
    built with: when `notifier.strict` is False a delivery failure is logged
    and swallowed, when True the error propagates.

    Returns:
        True when the notifier accepted the notification.
    """
    try:
        await notifier.notify(notification)
        return True
    except (NotificationError, CircuitBreakerOpenError) as e:
        if notifier.strict:
            raise
        logger.error(
            "Notification %s for %s not delivered: %s",
            notification.topic,
            notification.subject_id,
            e.message,
        )
        return False
