"""Generic ordered relationship store.

One implementation serves every join table. A frozen ``RelationshipKind``
names the ORM model, the parent and child key columns and the parent table
that is locked while positions are computed or rewritten.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from resume_backend.app.composition import positions
from resume_backend.app.db.integrity import classify_integrity_error
from resume_backend.app.errors import (
    AppError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    ServerError,
)

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")


@dataclass(frozen=True)
class RelationshipKind(Generic[RowT]):
    """Static description of one join table."""

    name: str
    model: type[RowT]
    parent_key: str
    child_key: str
    parent_model: type[Any]
    parent_label: str
    child_label: str

    @property
    def parent_column(self) -> Any:
        return getattr(self.model, self.parent_key)

    @property
    def child_column(self) -> Any:
        return getattr(self.model, self.child_key)


class RelationshipStore(Generic[RowT]):
    """Create, read, reposition and delete rows of one relationship kind.

    The store never commits. Callers run it inside ``unit_of_work`` so that
    multi-statement operations are applied all at once or not at all.
    """

    def __init__(self, kind: RelationshipKind[RowT], session: AsyncSession) -> None:
        self._kind = kind
        self._session = session

    @property
    def kind(self) -> RelationshipKind[RowT]:
        return self._kind

    def _where(self, parent_id: Any, child_id: Any | None = None) -> list[Any]:
        clauses = [self._kind.parent_column == parent_id]
        if child_id is not None:
            clauses.append(self._kind.child_column == child_id)
        return clauses

    def _log_prefix(self, operation: str, **params: Any) -> str:
        args = ", ".join(f"{key} = {value}" for key, value in params.items())
        return f"{self._kind.name}.{operation}({args})"

    async def lock_parent(self, parent_id: Any) -> None:
        """Lock the parent row for the rest of the transaction.

        Serializes appends and reorders on the same parent. Backends without
        row locks (SQLite) already serialize writers.

        Raises:
            NotFoundError: If the parent row does not exist
        """
        parent_model = self._kind.parent_model
        result = await self._session.execute(
            select(parent_model.id).where(parent_model.id == parent_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError(
                f"Can not find {self._kind.parent_label} with ID {parent_id}."
            )

    async def add(self, parent_id: Any, child_id: Any, position: int, **extra: Any) -> RowT:
        """Insert a relationship row at an explicit position.

        Raises:
            BadRequestError: If position is negative
            ConflictError: If the pair or the position is already taken
            NotFoundError: If either endpoint does not exist
        """
        log_prefix = self._log_prefix(
            "add", parent_id=parent_id, child_id=child_id, position=position
        )
        logger.debug(log_prefix)

        if position < 0:
            logger.warning("%s: position can not be less than 0", log_prefix)
            raise BadRequestError("Position can not be less than 0.")

        if await self._find(parent_id, child_id) is not None:
            logger.warning("%s: relationship already exists", log_prefix)
            raise ConflictError(
                f"Can not add {self._kind.child_label} to {self._kind.parent_label}, "
                "as it already exists."
            )

        row = self._kind.model(
            **{
                self._kind.parent_key: parent_id,
                self._kind.child_key: child_id,
                "position": position,
            },
            **extra,
        )
        self._session.add(row)

        try:
            await self._session.flush()
        except IntegrityError as e:
            raise self._translate(e, log_prefix) from e

        return row

    async def append(self, parent_id: Any, child_id: Any, **extra: Any) -> RowT:
        """Insert a relationship row after the highest existing position.

        The parent is locked first, so the position is computed and used in
        the same transaction.
        """
        await self.lock_parent(parent_id)
        existing = await self.positions(parent_id)
        return await self.add(
            parent_id, child_id, positions.next_position(existing), **extra
        )

    async def positions(self, parent_id: Any) -> list[int]:
        result = await self._session.execute(
            select(self._kind.model.position).where(*self._where(parent_id))
        )
        return list(result.scalars().all())

    async def get_all(self, parent_id: Any) -> list[RowT]:
        """Rows belonging to a parent, ascending by position."""
        result = await self._session.execute(
            select(self._kind.model)
            .where(*self._where(parent_id))
            .order_by(self._kind.model.position)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get(self, parent_id: Any, child_id: Any) -> RowT:
        """One row by its (parent, child) identity.

        Raises:
            NotFoundError: If the pair is not attached
        """
        row = await self._find(parent_id, child_id)
        if row is None:
            logger.warning(
                "%s: relationship not found",
                self._log_prefix("get", parent_id=parent_id, child_id=child_id),
            )
            raise NotFoundError(
                f"Can not find {self._kind.child_label} with ID {child_id} "
                f"in {self._kind.parent_label} with ID {parent_id}."
            )
        return row

    async def _find(self, parent_id: Any, child_id: Any) -> RowT | None:
        result = await self._session.execute(
            select(self._kind.model)
            .where(*self._where(parent_id, child_id))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def update_position(self, parent_id: Any, child_id: Any, position: int) -> RowT:
        """Move one row to a new position.

        Raises:
            BadRequestError: If position is negative
            ConflictError: If another row already holds the position
            ServerError: If the row vanished before the write
        """
        log_prefix = self._log_prefix(
            "update_position", parent_id=parent_id, child_id=child_id, position=position
        )
        logger.debug(log_prefix)

        if position < 0:
            raise BadRequestError("Position can not be less than 0.")

        rowcount = await self._set_position(parent_id, child_id, position, log_prefix)
        if rowcount == 0:
            logger.error("%s: relationship disappeared before update", log_prefix)
            raise ServerError(
                f"{self._kind.child_label.capitalize()} with ID {child_id} "
                f"was not found in {self._kind.parent_label} with ID {parent_id}."
            )

        return await self.get(parent_id, child_id)

    async def update_all_positions(
        self, parent_id: Any, new_positions: Mapping[Any, int]
    ) -> list[RowT]:
        """Write a whole position mapping for one parent.

        Runs in two phases so that no statement ever makes two rows share a
        position: first every listed row is parked above all current and
        requested positions, then each row receives its final position. Any
        missing row raises and the surrounding transaction rolls back.

        Raises:
            ServerError: If a listed row does not exist
            ConflictError: If a final position collides with an unlisted row
        """
        log_prefix = self._log_prefix(
            "update_all_positions",
            parent_id=parent_id,
            positions={str(key): value for key, value in new_positions.items()},
        )
        logger.debug(log_prefix)

        if not new_positions:
            return await self.get_all(parent_id)

        if min(new_positions.values()) < 0:
            raise BadRequestError("Position can not be less than 0.")

        parking_start = max(
            positions.next_position(await self.positions(parent_id)),
            max(new_positions.values()) + 1,
        )

        phases = (
            {
                child_id: parking_start + offset
                for offset, child_id in enumerate(new_positions)
            },
            dict(new_positions),
        )
        for phase in phases:
            for child_id, position in phase.items():
                rowcount = await self._set_position(parent_id, child_id, position, log_prefix)
                if rowcount != 1:
                    logger.error(
                        "%s: %s %s is not in %s",
                        log_prefix,
                        self._kind.child_label,
                        child_id,
                        self._kind.parent_label,
                    )
                    raise ServerError("Error when updating positions in database.")

        return await self.get_all(parent_id)

    async def reorder(self, parent_id: Any, ordered_child_ids: Sequence[Any]) -> list[RowT]:
        """Give the parent's rows dense positions in the requested order.

        Raises:
            BadRequestError: If the ids are not exactly the attached children
        """
        await self.lock_parent(parent_id)
        rows = await self.get_all(parent_id)
        new_positions = positions.reorder(
            [getattr(row, self._kind.child_key) for row in rows],
            ordered_child_ids,
            child_label=self._kind.child_label,
            parent_label=self._kind.parent_label,
        )
        return await self.update_all_positions(parent_id, new_positions)

    async def delete(self, parent_id: Any, child_id: Any) -> int:
        """Detach if present. Deleting an absent pair is not an error.

        Returns:
            Number of rows deleted (0 or 1)
        """
        log_prefix = self._log_prefix("delete", parent_id=parent_id, child_id=child_id)
        result = await self._session.execute(
            delete(self._kind.model).where(*self._where(parent_id, child_id))
        )
        rowcount = result.rowcount or 0
        logger.info("%s: %d %s entries deleted", log_prefix, rowcount, self._kind.name)
        return rowcount

    async def _set_position(
        self, parent_id: Any, child_id: Any, position: int, log_prefix: str
    ) -> int:
        try:
            result = await self._session.execute(
                update(self._kind.model)
                .where(*self._where(parent_id, child_id))
                .values(position=position)
            )
        except IntegrityError as e:
            raise self._translate(e, log_prefix) from e
        return result.rowcount or 0

    def _translate(self, err: IntegrityError, log_prefix: str) -> AppError:
        violation = classify_integrity_error(err)
        logger.warning("%s: integrity violation (%s): %s", log_prefix, violation, err.orig)

        if violation == "unique":
            return ConflictError(
                f"Can not add {self._kind.child_label} to {self._kind.parent_label}, "
                "as it, or its position, already exists."
            )
        if violation == "foreign_key":
            return NotFoundError(
                f"Can not find {self._kind.parent_label} or {self._kind.child_label}."
            )
        if violation == "check":
            return BadRequestError("Position can not be less than 0.")

        logger.error("%s: unexpected database error: %s", log_prefix, err)
        return ServerError(f"Error when saving {self._kind.child_label} relationship.")
