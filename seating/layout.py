"""
Classroom layout model.

Turns a ClassroomLayout into an ordered list of seat slots. Each regular
slot carries the zone of its row and the side of its table; overflow
slots have neither a table nor tablemates.

Iteration order is the tie-break order used by the assignment engine:
row ascending, then table number ascending, then seat position ascending,
with the overflow bank last.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from .data.models import (
    Assignment,
    ClassroomLayout,
    OVERFLOW_TABLE_NUMBER,
    PrimaryStyle,
    Side,
    Zone,
)


# Zone each primary learning style is drawn toward
ZONE_FOR_STYLE: dict[PrimaryStyle, Zone] = {
    PrimaryStyle.AUDIO: Zone.FRONT,
    PrimaryStyle.VISUAL: Zone.MIDDLE,
    PrimaryStyle.KINESTHETIC: Zone.BACK,
}

SlotKey = tuple[int, int, bool]


def zone_for_row(row_number: int, num_rows: int) -> Zone:
    """
    Zone of a row: the first row is the front, the last row the back.

    Example:
        >>> [zone_for_row(r, 4).value for r in range(1, 5)]
        ['front', 'middle', 'middle', 'back']
    """
    if row_number < 1 or row_number > num_rows:
        raise ValueError(f"row_number {row_number} outside 1..{num_rows}")
    if row_number == 1:
        return Zone.FRONT
    if row_number == num_rows:
        return Zone.BACK
    return Zone.MIDDLE


def side_for_table(position: int, tables_per_row: int) -> Side:
    """Side of the table at 1-based ``position`` within its row."""
    if tables_per_row <= 1:
        return Side.CENTER
    if position == 1:
        return Side.LEFT
    if position == tables_per_row:
        return Side.RIGHT
    return Side.CENTER


@dataclass(frozen=True)
class SeatSlot:
    """A single seat in the classroom."""
    table_number: int
    seat_position: int
    row_number: int
    zone: Optional[Zone]
    side: Optional[Side]
    is_overflow: bool = False

    @property
    def slot(self) -> SlotKey:
        return (self.table_number, self.seat_position, self.is_overflow)

    def to_assignment(self, student_id: str, is_manual_override: bool = False) -> Assignment:
        return Assignment(
            student_id=student_id,
            table_number=self.table_number,
            seat_position=self.seat_position,
            row_number=self.row_number,
            is_overflow=self.is_overflow,
            is_manual_override=is_manual_override,
        )

    def __str__(self) -> str:
        if self.is_overflow:
            return f"overflow seat {self.seat_position}"
        return f"table {self.table_number} seat {self.seat_position}"


class SeatMap:
    """
    Ordered seat slots for a classroom layout.

    Usage:
        seat_map = SeatMap(ClassroomLayout())
        for slot in seat_map.regular_slots:
            ...
    """

    def __init__(self, layout: ClassroomLayout):
        self.layout = layout
        self.regular_slots: list[SeatSlot] = []
        self.overflow_slots: list[SeatSlot] = []
        self.tables: dict[int, int] = {}  # table -> row

        for row in range(1, layout.num_rows + 1):
            zone = zone_for_row(row, layout.num_rows)
            for position in range(1, layout.tables_per_row + 1):
                table = (row - 1) * layout.tables_per_row + position
                side = side_for_table(position, layout.tables_per_row)
                self.tables[table] = row
                for seat in range(1, layout.seats_per_table + 1):
                    self.regular_slots.append(SeatSlot(
                        table_number=table,
                        seat_position=seat,
                        row_number=row,
                        zone=zone,
                        side=side,
                    ))

        for seat in range(1, layout.overflow_seats + 1):
            self.overflow_slots.append(SeatSlot(
                table_number=OVERFLOW_TABLE_NUMBER,
                seat_position=seat,
                row_number=layout.overflow_row_number,
                zone=None,
                side=None,
                is_overflow=True,
            ))

        self._by_key: dict[SlotKey, SeatSlot] = {s.slot: s for s in self}

    def __iter__(self) -> Iterator[SeatSlot]:
        yield from self.regular_slots
        yield from self.overflow_slots

    def __len__(self) -> int:
        return self.capacity

    @property
    def capacity(self) -> int:
        return len(self.regular_slots) + len(self.overflow_slots)

    @property
    def regular_capacity(self) -> int:
        return len(self.regular_slots)

    def get_slot(self, table_number: int, seat_position: int, is_overflow: bool = False) -> Optional[SeatSlot]:
        """Look up a slot; None if the seat does not exist in this layout."""
        return self._by_key.get((table_number, seat_position, is_overflow))

    def row_for_table(self, table_number: int) -> Optional[int]:
        return self.tables.get(table_number)

    def slots_for_table(self, table_number: int) -> list[SeatSlot]:
        return [s for s in self.regular_slots if s.table_number == table_number]

    def tables_in_zone(self, zone: Zone) -> list[int]:
        """Table numbers whose row falls in the given zone."""
        return sorted({s.table_number for s in self.regular_slots if s.zone == zone})
