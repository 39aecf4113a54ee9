"""Ownership guard - the single place content authorization is decided."""

import logging
from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")


async def verify_owner(
    session: AsyncSession,
    model: type[EntityT],
    username: str,
    key: Any,
    *,
    label: str,
) -> EntityT:
    """Load an owned entity and check that it belongs to ``username``.

    Every mutation calls this before touching relationship or content rows,
    once for each endpoint of a relationship.

    Args:
        session: Database session
        model: ORM class of the entity; it must have an ``owner`` column
        username: Identity making the request
        key: Primary key, a tuple for composite keys
        label: Human-readable entity name used in error messages

    Returns:
        The loaded entity

    Raises:
        NotFoundError: If no entity has this key
        ForbiddenError: If the entity belongs to someone else
    """
    entity = await session.get(model, key)

    if entity is None:
        logger.warning("%s %s not found", label, key)
        raise NotFoundError(f"Can not find {label} with ID {_format_key(key)}.")

    owner = getattr(entity, "owner")
    if owner != username:
        logger.warning(
            "%s %s does not belong to user %r; it belongs to %r",
            label,
            key,
            username,
            owner,
        )
        raise ForbiddenError(f"Can not access or interact with another user's {label}.")

    return entity


def _format_key(key: Any) -> str:
    if isinstance(key, tuple):
        return ", ".join(str(part) for part in key)
    return str(key)
