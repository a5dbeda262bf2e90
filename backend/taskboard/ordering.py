"""Dense positional ordering for columns-in-board and tasks-in-column.

Every function here works on a plain list of objects exposing a mutable
integer ``position`` attribute and knows nothing about the store. Positions
are 1-based and, after any call, the members of a collection hold exactly
``1..N`` in their intended order.

Each operation builds the complete new order first and writes positions
only once the intent has been validated, so a rejected call leaves every
item untouched.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, MutableSequence, Protocol, Sequence

# purpose: pure insert/move/remove/renormalize algorithms shared by columns and tasks
# status: active


class Positioned(Protocol):
    position: int


class OrderingError(ValueError):
    """Raised when an intent cannot be applied to the given collection."""


def clamp_position(desired: Any, count: int) -> int:
    """Clamp a desired slot into ``[1, count + 1]``.

    ``None`` means append. Fractional values are rounded; non-finite values
    are rejected because there is no meaningful slot to clamp them to.
    """

    if desired is None:
        return count + 1
    if isinstance(desired, bool) or not isinstance(desired, (int, float)):
        raise OrderingError("position must be a number")
    if isinstance(desired, float):
        if not math.isfinite(desired):
            raise OrderingError("position must be a finite number")
        desired = int(round(desired))
    return max(1, min(desired, count + 1))


def _sorted(collection: Iterable[Positioned]) -> list[Positioned]:
    # sorted() is stable: ties keep the caller's load order
    return sorted(collection, key=lambda item: item.position)


def _index_of(collection: Sequence[Positioned], item: Positioned) -> int:
    for index, candidate in enumerate(collection):
        if candidate is item:
            return index
    return -1


def _assign(ordered: Sequence[Positioned]) -> list[Positioned]:
    changed = []
    for index, item in enumerate(ordered, start=1):
        if item.position != index:
            item.position = index
            changed.append(item)
    return changed


def renormalize(collection: MutableSequence[Positioned]) -> list[Positioned]:
    """Reassign ``1..N`` following the current (possibly sparse) order.

    The list is re-sorted in place and the items whose position changed are
    returned, which lets callers persist only what moved.
    """

    ordered = _sorted(collection)
    collection[:] = ordered
    return _assign(ordered)


def is_dense(collection: Iterable[Positioned]) -> bool:
    positions = sorted(item.position for item in collection)
    return positions == list(range(1, len(positions) + 1))


def insert(
    collection: MutableSequence[Positioned],
    item: Positioned,
    position: Any = None,
) -> int:
    """Insert ``item`` at ``position`` (clamped), shifting later items up."""

    if _index_of(collection, item) != -1:
        raise OrderingError("item is already part of the collection")
    ordered = _sorted(collection)
    slot = clamp_position(position, len(ordered))
    ordered.insert(slot - 1, item)
    _assign(ordered)
    collection[:] = ordered
    return item.position


def remove(collection: MutableSequence[Positioned], item: Positioned) -> list[Positioned]:
    """Drop ``item`` and close the gap it leaves behind."""

    ordered = _sorted(collection)
    index = _index_of(ordered, item)
    if index == -1:
        raise OrderingError("item is not part of the collection")
    del ordered[index]
    changed = _assign(ordered)
    collection[:] = ordered
    return changed


def move(
    source: MutableSequence[Positioned],
    item: Positioned,
    position: Any = None,
    target: MutableSequence[Positioned] | None = None,
) -> int:
    """Move ``item`` out of ``source`` and into ``target`` at ``position``.

    A same-collection reorder and a cross-collection move share one
    algorithm: remove from the source (renormalizing what stays), then
    insert into the target. ``target`` defaults to ``source``.
    """

    if _index_of(source, item) == -1:
        raise OrderingError("item is not part of the source collection")
    same = target is None or target is source
    destination = source if same else target
    if not same and _index_of(destination, item) != -1:
        raise OrderingError("item is already part of the target collection")

    remaining = [member for member in _sorted(source) if member is not item]
    if same:
        slot = clamp_position(position, len(remaining))
        remaining.insert(slot - 1, item)
        _assign(remaining)
        source[:] = remaining
        return item.position

    ordered_target = _sorted(destination)
    slot = clamp_position(position, len(ordered_target))
    ordered_target.insert(slot - 1, item)
    _assign(remaining)
    _assign(ordered_target)
    source[:] = remaining
    destination[:] = ordered_target
    return item.position
