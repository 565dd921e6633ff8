"""Tests for manual seating edits."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter

from seating.constraints import ConstraintIndex
from seating.data.models import Assignment, ClassroomLayout, Preference, Student
from seating.layout import SeatMap
from seating.overrides import (
    ClearAll,
    EditOperation,
    InvalidEditError,
    MoveToEmpty,
    SeatRef,
    SwapOrDisplace,
    Unassign,
    affected_tables,
    annotate_conflicts,
    apply_manual_edit,
    apply_manual_edits,
    unassigned_students,
    validate_assignments,
)


def _seat(student_id: str, table: int, seat: int, row: int = 1) -> Assignment:
    return Assignment(student_id=student_id, table_number=table, seat_position=seat, row_number=row)


def _pairs(assignments) -> set[tuple[str, tuple[int, int, bool]]]:
    return {(a.student_id, a.slot) for a in assignments}


@pytest.fixture
def layout() -> ClassroomLayout:
    return ClassroomLayout()


@pytest.fixture
def chart() -> list[Assignment]:
    return [
        _seat("s1", 1, 1),
        _seat("s2", 1, 2),
        _seat("s3", 3, 1, row=2),
    ]


class TestMoveToEmpty:
    """Tests for moving a student to an empty seat."""

    def test_move_seated_student(self, chart, layout):
        result = apply_manual_edit(chart, MoveToEmpty(student_id="s1", target=SeatRef(table_number=4, seat_position=2)), layout)

        moved = [a for a in result if a.student_id == "s1"]
        assert len(moved) == 1
        assert moved[0].slot == (4, 2, False)
        assert moved[0].row_number == 2
        assert moved[0].is_manual_override is True
        assert len(result) == 3

    def test_untouched_entries_keep_order(self, chart, layout):
        result = apply_manual_edit(chart, MoveToEmpty(student_id="s1", target=SeatRef(table_number=4, seat_position=2)), layout)
        assert result[:2] == chart[1:]
        assert result[-1].student_id == "s1"

    def test_move_unassigned_student(self, chart, layout):
        result = apply_manual_edit(chart, MoveToEmpty(student_id="s9", target=SeatRef(table_number=2, seat_position=1)), layout)
        assert len(result) == 4
        assert ("s9", (2, 1, False)) in _pairs(result)

    def test_move_to_overflow(self, chart, layout):
        result = apply_manual_edit(chart, MoveToEmpty(student_id="s3", target=SeatRef.overflow(2)), layout)
        moved = next(a for a in result if a.student_id == "s3")
        assert moved.is_overflow is True
        assert moved.table_number == 0
        assert moved.row_number == 5

    def test_move_to_occupied_seat_rejected(self, chart, layout):
        with pytest.raises(InvalidEditError, match="occupied"):
            apply_manual_edit(chart, MoveToEmpty(student_id="s3", target=SeatRef(table_number=1, seat_position=1)), layout)

    def test_move_to_missing_seat_rejected(self, chart, layout):
        with pytest.raises(InvalidEditError, match="does not exist"):
            apply_manual_edit(chart, MoveToEmpty(student_id="s1", target=SeatRef(table_number=9, seat_position=1)), layout)

    def test_input_not_mutated(self, chart, layout):
        original = list(chart)
        apply_manual_edit(chart, MoveToEmpty(student_id="s1", target=SeatRef(table_number=4, seat_position=2)), layout)
        assert chart == original


class TestSwapOrDisplace:
    """Tests for dropping a student on a seat."""

    def test_swap_two_seated_students(self, chart, layout):
        result = apply_manual_edit(chart, SwapOrDisplace(student_id="s1", target=SeatRef(table_number=3, seat_position=1)), layout)
        assert _pairs(result) == {
            ("s1", (3, 1, False)),
            ("s2", (1, 2, False)),
            ("s3", (1, 1, False)),
        }
        swapped = {a.student_id: a for a in result}
        assert swapped["s1"].is_manual_override
        assert swapped["s3"].is_manual_override
        assert not swapped["s2"].is_manual_override
        assert swapped["s3"].row_number == 1

    def test_swap_is_its_own_inverse(self, chart, layout):
        once = apply_manual_edit(chart, SwapOrDisplace(student_id="s1", target=SeatRef(table_number=3, seat_position=1)), layout)
        twice = apply_manual_edit(once, SwapOrDisplace(student_id="s1", target=SeatRef(table_number=1, seat_position=1)), layout)
        assert _pairs(twice) == _pairs(chart)

    def test_unassigned_mover_displaces_occupant(self, chart, layout):
        result = apply_manual_edit(chart, SwapOrDisplace(student_id="s9", target=SeatRef(table_number=1, seat_position=1)), layout)
        assert ("s9", (1, 1, False)) in _pairs(result)
        assert "s1" not in {a.student_id for a in result}
        assert len(result) == 3

    def test_swap_onto_empty_seat_moves(self, chart, layout):
        result = apply_manual_edit(chart, SwapOrDisplace(student_id="s2", target=SeatRef(table_number=8, seat_position=3)), layout)
        assert ("s2", (8, 3, False)) in _pairs(result)
        assert len(result) == 3

    def test_drop_on_own_seat_is_noop(self, chart, layout):
        result = apply_manual_edit(chart, SwapOrDisplace(student_id="s1", target=SeatRef(table_number=1, seat_position=1)), layout)
        assert result == chart

    def test_swap_with_overflow_student(self, layout):
        chart = [
            _seat("s1", 1, 1),
            Assignment(student_id="s2", table_number=0, seat_position=1, row_number=5, is_overflow=True),
        ]
        result = apply_manual_edit(chart, SwapOrDisplace(student_id="s2", target=SeatRef(table_number=1, seat_position=1)), layout)
        assert _pairs(result) == {("s2", (1, 1, False)), ("s1", (0, 1, True))}


class TestUnassign:
    """Tests for unassigning students."""

    def test_unassign(self, chart, layout):
        result = apply_manual_edit(chart, Unassign(student_id="s2"), layout)
        assert [a.student_id for a in result] == ["s1", "s3"]

    def test_unassign_is_idempotent(self, chart, layout):
        once = apply_manual_edit(chart, Unassign(student_id="s2"), layout)
        twice = apply_manual_edit(once, Unassign(student_id="s2"), layout)
        assert once == twice

    def test_unassign_unseated_student(self, chart, layout):
        assert apply_manual_edit(chart, Unassign(student_id="s9"), layout) == chart

    def test_clear_all(self, chart, layout):
        assert apply_manual_edit(chart, ClearAll(), layout) == []


class TestEditSequences:
    """Tests for apply_manual_edits and operation parsing."""

    def test_apply_in_order(self, chart, layout):
        result = apply_manual_edits(
            chart,
            [
                Unassign(student_id="s1"),
                MoveToEmpty(student_id="s2", target=SeatRef(table_number=1, seat_position=1)),
                SwapOrDisplace(student_id="s1", target=SeatRef(table_number=1, seat_position=1)),
            ],
            SeatMap(layout),
        )
        assert _pairs(result) == {("s3", (3, 1, False)), ("s1", (1, 1, False))}

    def test_parse_operations(self):
        adapter = TypeAdapter(EditOperation)
        move = adapter.validate_python({"op": "move", "student_id": "s1", "target": {"table_number": 2, "seat_position": 1}})
        clear = adapter.validate_python({"op": "clear"})
        assert isinstance(move, MoveToEmpty)
        assert isinstance(clear, ClearAll)

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValueError):
            TypeAdapter(EditOperation).validate_python({"op": "teleport", "student_id": "s1"})


class TestQueries:
    """Tests for read-only chart queries."""

    def test_affected_tables(self, chart, layout):
        after = apply_manual_edit(chart, SwapOrDisplace(student_id="s1", target=SeatRef(table_number=3, seat_position=1)), layout)
        assert affected_tables(chart, after) == [1, 3]

    def test_affected_tables_ignores_overflow(self, chart, layout):
        after = apply_manual_edit(chart, MoveToEmpty(student_id="s3", target=SeatRef.overflow(1)), layout)
        assert affected_tables(chart, after) == [3]

    def test_annotate_conflicts(self, chart):
        students = [Student(id=f"s{i}", first_name=f"S{i}") for i in range(1, 4)]
        index = ConstraintIndex(
            students,
            preferences=[Preference(student_id="s1", other_student_id="s2", preference_type="avoid")],
        )
        assert annotate_conflicts(index, chart) == {1: {"s1": ["s2"], "s2": ["s1"]}}
        assert annotate_conflicts(index, chart, tables=[3]) == {}

    def test_unassigned_students(self, chart):
        students = [Student(id=f"s{i}", first_name=f"S{i}") for i in range(1, 6)]
        assert [s.id for s in unassigned_students(students, chart)] == ["s4", "s5"]

    def test_validate_assignments_ok(self, chart, layout):
        validate_assignments(chart, layout)

    def test_validate_duplicate_seat(self, layout):
        with pytest.raises(InvalidEditError, match="assigned to both"):
            validate_assignments([_seat("s1", 1, 1), _seat("s2", 1, 1)], layout)

    def test_validate_duplicate_student(self):
        with pytest.raises(InvalidEditError, match="more than one seat"):
            validate_assignments([_seat("s1", 1, 1), _seat("s1", 1, 2)])

    def test_validate_missing_seat(self, layout):
        with pytest.raises(InvalidEditError, match="does not exist"):
            validate_assignments([_seat("s1", 12, 1)], layout)
