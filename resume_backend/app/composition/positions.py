"""Position allocation for ordered relationships.

Appends use ``max + 1`` and so may leave gaps; a bulk reorder always writes
dense positions ``0..N-1``. Only relative order is meaningful.
"""

from collections.abc import Hashable, Iterable, Sequence
from typing import TypeVar

from resume_backend.app.errors import BadRequestError

IdT = TypeVar("IdT", bound=Hashable)


def next_position(positions: Iterable[int]) -> int:
    """Position for an item appended after everything already attached.

    Uses the highest existing value, not the row count, because deletions and
    earlier appends can leave gaps: ``{9, 3}`` gives ``10``.

    Returns:
        ``max(positions) + 1``, or ``0`` when nothing is attached
    """
    return max(positions, default=-1) + 1


def reorder(
    current_ids: Iterable[IdT],
    requested_order: Sequence[IdT],
    *,
    child_label: str = "item",
    parent_label: str = "document",
) -> dict[IdT, int]:
    """Map each id to its index in ``requested_order``.

    Args:
        current_ids: Ids currently attached to the parent
        requested_order: Desired order; must list every current id exactly once
        child_label: Name of the attached things, for the error message
        parent_label: Name of the container, for the error message

    Returns:
        Mapping of id to new 0-based position

    Raises:
        BadRequestError: If the request is not a permutation of the current ids
    """
    current = set(current_ids)
    requested = list(requested_order)

    if len(requested) != len(current) or set(requested) != current:
        raise BadRequestError(
            f"All {child_label}s, and only those, need to be included "
            f"when updating their positions in a {parent_label}."
        )

    return {item_id: index for index, item_id in enumerate(requested)}
