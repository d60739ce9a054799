"""WeeklyTemplate - the recurring timetable a semester is generated from.

Timetable collaborators store one row per (day, slot, subject). Slots are
kept either as an "HH:MM-HH:MM" label or as separate start/end strings:

    {"day": "MON", "slot": "08:00-08:50", "subject_id": "maths"}
    {"day": "TUE", "start": "14:00", "end": "16:00", "subject_id": "physics", "block_type": "LAB"}

Rows typed FREE, or without a subject, are empty periods and are skipped.
"""

from collections.abc import Iterable, Iterator, Mapping
from datetime import time
from typing import Any

from bunkplan.errors import InvalidTimeSlotError
from bunkplan.logging import get_logger
from bunkplan.models import BlockType, DayOfWeek, TimeSlot, WeeklyTemplateEntry

log = get_logger(__name__)

FREE_BLOCK = "FREE"


class WeeklyTemplate:
    """Immutable snapshot of a user's weekly timetable.

    The generator reads from a snapshot so later timetable edits never
    affect a semester that has already been materialized.

    Each (day, slot) holds at most one entry: a later entry for the same day
    and slot replaces the earlier one, keeping the earlier one's position.
    """

    def __init__(self, entries: Iterable[WeeklyTemplateEntry] = ()) -> None:
        by_slot: dict[tuple[DayOfWeek, TimeSlot], WeeklyTemplateEntry] = {}
        for entry in entries:
            by_slot[(entry.day_of_week, entry.time_slot)] = entry
        self._entries: tuple[WeeklyTemplateEntry, ...] = tuple(by_slot.values())

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "WeeklyTemplate":
        """Build a template from plain timetable rows.

        Args:
            rows: Mappings with "day", "subject_id" and either "slot"
                  ("HH:MM-HH:MM") or "start"/"end" ("HH:MM"); "block_type"
                  (or "type") is optional and defaults to THEORY. FREE rows
                  and rows with an empty subject are skipped.

        Raises:
            ValueError: If a day, slot label or block type is malformed.
        """
        entries = []
        skipped = 0
        for row in rows:
            block_type = str(row.get("block_type", row.get("type")) or BlockType.THEORY.value).upper()
            subject_id = row.get("subject_id")
            if block_type == FREE_BLOCK or not subject_id:
                skipped += 1
                continue

            if "slot" in row:
                slot = TimeSlot.from_label(row["slot"])
            else:
                slot = TimeSlot(
                    start=time.fromisoformat(row["start"]),
                    end=time.fromisoformat(row["end"]),
                )
            entries.append(
                WeeklyTemplateEntry(
                    day_of_week=DayOfWeek(str(row["day"]).upper()),
                    time_slot=slot,
                    subject_id=str(subject_id),
                    block_type=BlockType(block_type),
                )
            )

        if skipped:
            log.debug("timetable_rows_skipped", skipped=skipped, kept=len(entries))
        return cls(entries)

    def __iter__(self) -> Iterator[WeeklyTemplateEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def entries_for(self, day_of_week: DayOfWeek) -> list[WeeklyTemplateEntry]:
        """Entries scheduled on the given weekday, in insertion order."""
        return [e for e in self._entries if e.day_of_week == day_of_week]

    def subject_ids(self) -> list[str]:
        """Subject ids in order of first appearance."""
        seen: dict[str, None] = {}
        for entry in self._entries:
            seen.setdefault(entry.subject_id, None)
        return list(seen)

    def validate(self) -> None:
        """Reject slots that do not end after they start, and same-subject overlaps.

        Two entries of one subject on the same day may touch (end == start,
        merged later by the generator) but must not overlap.

        Raises:
            InvalidTimeSlotError: On the first offending entry.
        """
        for entry in self._entries:
            slot = entry.time_slot
            if slot.end <= slot.start:
                raise InvalidTimeSlotError(
                    f"Time slot {slot.label} on {entry.day_of_week.value} for "
                    f"subject {entry.subject_id!r} must end after it starts"
                )

        for n, entry in enumerate(self._entries):
            for other in self._entries[n + 1 :]:
                if (
                    other.day_of_week == entry.day_of_week
                    and other.subject_id == entry.subject_id
                    and entry.time_slot.start < other.time_slot.end
                    and other.time_slot.start < entry.time_slot.end
                ):
                    raise InvalidTimeSlotError(
                        f"Time slots {entry.time_slot.label} and {other.time_slot.label} "
                        f"on {entry.day_of_week.value} overlap for subject "
                        f"{entry.subject_id!r}"
                    )
