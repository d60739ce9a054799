"""Date-range membership for holidays and exam blocks.

Comparison is by calendar day: a datetime is reduced to its date before
checking, and block boundaries are inclusive on both ends.
"""

from collections.abc import Iterable, Iterator
from datetime import date, datetime

from bunkplan.models import BlackoutBlock


def _as_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def find_block(day: date | datetime, blocks: Iterable[BlackoutBlock]) -> BlackoutBlock | None:
    """Return the first block (in iteration order) whose range contains day."""
    day = _as_day(day)
    for block in blocks:
        if block.start_date <= day <= block.end_date:
            return block
    return None


def contains(day: date | datetime, blocks: Iterable[BlackoutBlock]) -> bool:
    """True iff day falls within [start_date, end_date] of at least one block."""
    return find_block(day, blocks) is not None


class IntervalSet:
    """A small, possibly overlapping collection of blackout blocks.

    Semesters carry only a handful of blocks, so lookups are linear scans.
    """

    def __init__(self, blocks: Iterable[BlackoutBlock] = ()) -> None:
        self._blocks: tuple[BlackoutBlock, ...] = tuple(blocks)

    def __iter__(self) -> Iterator[BlackoutBlock]:
        return iter(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def __repr__(self) -> str:
        return f"IntervalSet({list(self._blocks)!r})"

    def contains(self, day: date | datetime) -> bool:
        return contains(day, self._blocks)

    def find(self, day: date | datetime) -> BlackoutBlock | None:
        return find_block(day, self._blocks)

    def union(self, other: Iterable[BlackoutBlock]) -> "IntervalSet":
        return IntervalSet((*self._blocks, *other))
