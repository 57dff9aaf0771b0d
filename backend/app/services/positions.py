"""Ordering keys for issues inside a Kanban column.

Each issue carries a float ``list_position``; a column renders its issues in
ascending key order. Moving an issue only rewrites the moved issue's key:
the new key is placed between the keys of its future neighbours. Repeated
halving of the same gap eventually runs out of float precision, at which
point ``allocate`` raises ``PositionCollapsed`` and the caller renumbers the
column with ``renumber``.
"""
from collections.abc import Sequence

FIRST_POSITION = 1.0


class PositionCollapsed(Exception):
    """No float key exists strictly between the two neighbours."""

    def __init__(self, before: float, after: float) -> None:
        super().__init__(f"No free position between {before!r} and {after!r}")
        self.before = before
        self.after = after


def allocate(before: float | None, after: float | None) -> float:
    """Return a key that sorts after ``before`` and before ``after``.

    ``None`` stands for the start (``before``) or end (``after``) of the
    column. An empty column starts at ``1``, a head insert takes
    ``after - 1`` and a tail insert takes ``before + 1``.
    """
    if before is None and after is None:
        return FIRST_POSITION
    if before is None:
        return after - 1
    if after is None:
        return before + 1

    if before > after:
        raise ValueError(f"Neighbour keys out of order: {before!r} > {after!r}")
    if before == after:
        raise PositionCollapsed(before, after)

    midpoint = (before + after) / 2
    if not before < midpoint < after:
        raise PositionCollapsed(before, after)
    return midpoint


def neighbors(keys: Sequence[float], index: int) -> tuple[float | None, float | None]:
    """Keys on either side of slot ``index`` in an ordered key sequence."""
    if index < 0 or index > len(keys):
        raise IndexError(f"Slot {index} is outside 0..{len(keys)}")
    before = keys[index - 1] if index > 0 else None
    after = keys[index] if index < len(keys) else None
    return before, after


def renumber(count: int) -> list[float]:
    return [FIRST_POSITION + offset for offset in range(count)]
