"""
Manual override layer for seating charts.

Hand edits on a generated or blank chart, expressed as pure functions:
each edit takes the current assignment list and returns a new one, never
mutating its input. A student is always either unassigned or seated in
exactly one seat; the operations below are the only transitions.

- MoveToEmpty: leave the current seat (if any) for an empty seat
- SwapOrDisplace: take a seat; a seated mover swaps with the occupant,
  an unassigned mover pushes the occupant to the unassigned pool
- Unassign: return the student to the unassigned pool
- ClearAll: unassign everyone

Conflict annotation is read-only: it reports avoid partners sharing the
affected tables and never corrects the chart.
"""

from __future__ import annotations

import logging
from typing import Annotated, Iterable, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from .constraints import ConstraintIndex, table_occupancy
from .data.models import Assignment, ClassroomLayout, OVERFLOW_TABLE_NUMBER, Student
from .layout import SeatMap, SeatSlot

logger = logging.getLogger(__name__)


class InvalidEditError(ValueError):
    """Raised when a manual edit cannot be applied."""
    pass


# =============================================================================
# Edit Operations
# =============================================================================

class SeatRef(BaseModel):
    """Reference to a seat in the layout."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    table_number: int = Field(ge=0, description="Table number (0 for overflow)")
    seat_position: int = Field(ge=1, description="Seat at the table")
    is_overflow: bool = Field(default=False, description="Seat is in the overflow bank")

    @property
    def slot(self) -> tuple[int, int, bool]:
        return (self.table_number, self.seat_position, self.is_overflow)

    @classmethod
    def overflow(cls, seat_position: int) -> SeatRef:
        return cls(table_number=OVERFLOW_TABLE_NUMBER, seat_position=seat_position, is_overflow=True)


class MoveToEmpty(BaseModel):
    """Move a student to an empty seat."""
    model_config = ConfigDict(extra="forbid")

    op: Literal["move"] = "move"
    student_id: str = Field(min_length=1)
    target: SeatRef


class SwapOrDisplace(BaseModel):
    """Drop a student on a seat, swapping with or displacing its occupant."""
    model_config = ConfigDict(extra="forbid")

    op: Literal["swap"] = "swap"
    student_id: str = Field(min_length=1)
    target: SeatRef


class Unassign(BaseModel):
    """Return a student to the unassigned pool."""
    model_config = ConfigDict(extra="forbid")

    op: Literal["unassign"] = "unassign"
    student_id: str = Field(min_length=1)


class ClearAll(BaseModel):
    """Unassign every student."""
    model_config = ConfigDict(extra="forbid")

    op: Literal["clear"] = "clear"


EditOperation = Annotated[
    Union[MoveToEmpty, SwapOrDisplace, Unassign, ClearAll],
    Field(discriminator="op"),
]


# =============================================================================
# Applying Edits
# =============================================================================

def apply_manual_edit(
    assignments: Sequence[Assignment],
    operation: MoveToEmpty | SwapOrDisplace | Unassign | ClearAll,
    layout: ClassroomLayout | SeatMap,
) -> list[Assignment]:
    """
    Apply one manual edit and return the new assignment list.

    Entries the edit does not touch keep their order; new or moved
    entries are appended.

    Raises:
        InvalidEditError: If the target seat does not exist, or a
            MoveToEmpty targets an occupied seat
    """
    seat_map = layout if isinstance(layout, SeatMap) else SeatMap(layout)
    current = list(assignments)

    if isinstance(operation, ClearAll):
        return []

    if isinstance(operation, Unassign):
        return _unassign(current, operation.student_id)

    target = _resolve_target(seat_map, operation.target)
    mover = operation.student_id
    mover_seat = _seat_of(current, mover)
    occupant = _occupant_of(current, target)

    if mover_seat is not None and mover_seat.slot == target.slot:
        return current

    if occupant is None:
        return _place(_without(current, {mover}), mover, target)

    if isinstance(operation, MoveToEmpty):
        raise InvalidEditError(
            f"Cannot move {mover} to {target}: seat is occupied by {occupant.student_id}"
        )

    remaining = _without(current, {mover, occupant.student_id})

    if mover_seat is None:
        logger.debug("%s displaced %s from %s", mover, occupant.student_id, target)
        return _place(remaining, mover, target)

    vacated = seat_map.get_slot(*mover_seat.slot)
    if vacated is None:
        raise InvalidEditError(f"{mover} is seated at a seat missing from the layout: {mover_seat.slot}")

    logger.debug("Swapped %s and %s", mover, occupant.student_id)
    result = _place(remaining, occupant.student_id, vacated)
    return _place(result, mover, target)


def apply_manual_edits(
    assignments: Sequence[Assignment],
    operations: Iterable[MoveToEmpty | SwapOrDisplace | Unassign | ClearAll],
    layout: ClassroomLayout | SeatMap,
) -> list[Assignment]:
    """Apply edits in order."""
    seat_map = layout if isinstance(layout, SeatMap) else SeatMap(layout)
    result = list(assignments)
    for operation in operations:
        result = apply_manual_edit(result, operation, seat_map)
    return result


# =============================================================================
# Queries
# =============================================================================

def affected_tables(before: Sequence[Assignment], after: Sequence[Assignment]) -> list[int]:
    """Regular tables whose occupants differ between two assignment lists."""
    old = set(before)
    new = set(after)
    changed = (old - new) | (new - old)
    return sorted({a.table_number for a in changed if not a.is_overflow})


def annotate_conflicts(
    index: ConstraintIndex,
    assignments: Sequence[Assignment],
    tables: Optional[Iterable[int]] = None,
) -> dict[int, dict[str, list[str]]]:
    """
    Avoid conflicts for live highlighting.

    Returns ``{table: {student_id: [avoid partners at that table]}}`` for
    the given tables (all tables when None), omitting students without
    conflicts and tables without any.
    """
    occupancy = table_occupancy(assignments)
    selected = sorted(occupancy) if tables is None else sorted(set(tables))

    annotations: dict[int, dict[str, list[str]]] = {}
    for table in selected:
        table_conflicts = {}
        for student_id in occupancy.get(table, ()):
            partners = index.conflicts_at(student_id, table, occupancy)
            if partners:
                table_conflicts[student_id] = partners
        if table_conflicts:
            annotations[table] = table_conflicts
    return annotations


def unassigned_students(students: Sequence[Student], assignments: Sequence[Assignment]) -> list[Student]:
    """Students in the roster with no seat, in roster order."""
    seated = {a.student_id for a in assignments}
    return [s for s in students if s.id not in seated]


def validate_assignments(assignments: Sequence[Assignment], layout: ClassroomLayout | SeatMap | None = None) -> None:
    """
    Check seat and student uniqueness, and seat existence if a layout is given.

    Raises:
        InvalidEditError: Listing every violation found
    """
    seat_map = layout if isinstance(layout, SeatMap) or layout is None else SeatMap(layout)
    errors: list[str] = []
    seen_slots: dict[tuple[int, int, bool], str] = {}
    seen_students: set[str] = set()

    for a in assignments:
        if a.slot in seen_slots:
            errors.append(f"Seat {a.slot} assigned to both {seen_slots[a.slot]} and {a.student_id}")
        else:
            seen_slots[a.slot] = a.student_id

        if a.student_id in seen_students:
            errors.append(f"Student {a.student_id} assigned to more than one seat")
        seen_students.add(a.student_id)

        if seat_map is not None and seat_map.get_slot(*a.slot) is None:
            errors.append(f"Seat {a.slot} for {a.student_id} does not exist in the layout")

    if errors:
        raise InvalidEditError("Invalid assignments:\n" + "\n".join(f"  - {e}" for e in errors))


# =============================================================================
# Helpers
# =============================================================================

def _resolve_target(seat_map: SeatMap, target: SeatRef) -> SeatSlot:
    slot = seat_map.get_slot(*target.slot)
    if slot is None:
        raise InvalidEditError(f"Seat {target.slot} does not exist in the layout")
    return slot


def _seat_of(assignments: Sequence[Assignment], student_id: str) -> Optional[Assignment]:
    for a in assignments:
        if a.student_id == student_id:
            return a
    return None


def _occupant_of(assignments: Sequence[Assignment], slot: SeatSlot) -> Optional[Assignment]:
    for a in assignments:
        if a.slot == slot.slot:
            return a
    return None


def _without(assignments: Sequence[Assignment], student_ids: set[str]) -> list[Assignment]:
    return [a for a in assignments if a.student_id not in student_ids]


def _place(assignments: list[Assignment], student_id: str, slot: SeatSlot) -> list[Assignment]:
    return assignments + [slot.to_assignment(student_id, is_manual_override=True)]


def _unassign(assignments: list[Assignment], student_id: str) -> list[Assignment]:
    if _seat_of(assignments, student_id) is None:
        return assignments
    return _without(assignments, {student_id})
