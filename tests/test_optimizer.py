"""Tests for the CP-SAT seating model builder."""

from __future__ import annotations

import pytest

from seating.data.generator import GeneratorConfig, generate_sample_cohort, generate_small_cohort
from seating.data.models import (
    ClassroomLayout,
    LearningStyle,
    Preference,
    SeatingInput,
    Student,
)
from seating.optimizer import SeatingModelBuilder, SolverStatus


def _students(n: int, agency: str | None = None) -> list[Student]:
    return [Student(id=f"s{i}", first_name=f"Student{i}", agency=agency) for i in range(1, n + 1)]


def _layout(rows: int, tables: int, seats: int = 3, overflow: int = 0) -> ClassroomLayout:
    return ClassroomLayout(num_rows=rows, tables_per_row=tables, seats_per_table=seats, overflow_seats=overflow)


def _solve(seating_input: SeatingInput, time_limit_seconds: int = 10):
    return SeatingModelBuilder(seating_input).solve(time_limit_seconds=time_limit_seconds)


class TestBuilderLifecycle:
    """Tests for builder step ordering."""

    @pytest.fixture
    def builder(self) -> SeatingModelBuilder:
        return SeatingModelBuilder(SeatingInput(students=_students(3), layout=_layout(1, 2, overflow=1)))

    def test_add_constraints_requires_variables(self, builder):
        with pytest.raises(RuntimeError, match="create_variables"):
            builder.add_constraints()

    def test_set_objective_requires_constraints(self, builder):
        builder.create_variables()
        with pytest.raises(RuntimeError, match="add_constraints"):
            builder.set_objective()

    def test_statistics(self, builder):
        builder.create_variables()
        builder.add_constraints()
        stats = builder.get_statistics()
        assert stats["num_students"] == 3
        assert stats["num_seats"] == 7
        assert stats["num_tables"] == 2
        assert stats["num_placement_vars"] == 9
        assert stats["constraints_added"] is True
        assert stats["objective_set"] is False

    def test_constraint_stats(self, builder):
        builder.create_variables()
        builder.add_constraints()
        assert builder.stats.student_constraints == 3
        assert builder.stats.table_capacity == 0
        assert builder.stats.overflow_capacity == 1
        assert builder.stats.placement_rewards == 9

    def test_capacity_only_where_it_binds(self):
        builder = SeatingModelBuilder(SeatingInput(students=_students(4), layout=_layout(1, 2, overflow=0)))
        builder.create_variables()
        builder.add_constraints()
        assert builder.stats.table_capacity == 2
        assert builder.stats.overflow_capacity == 0
        assert all(pv.overflow is None for pv in builder.placement_vars.values())

    def test_create_variables_is_idempotent(self, builder):
        builder.create_variables()
        builder.create_variables()
        assert len(builder.placement_vars) == 3


class TestSolve:
    """Tests for solving small classrooms."""

    def test_three_students_one_table(self):
        solution = _solve(SeatingInput(students=_students(3), layout=_layout(1, 1)))
        assert solution.status == SolverStatus.OPTIMAL
        assert solution.is_feasible
        assert len(solution.assignments) == 3
        assert solution.unplaced == []
        assert {a.table_number for a in solution.assignments} == {1}

    def test_avoid_pair_separated(self):
        seating_input = SeatingInput(
            students=_students(2),
            preferences=[Preference(student_id="s1", other_student_id="s2", preference_type="avoid")],
            layout=_layout(1, 2),
        )
        tables = {a.student_id: a.table_number for a in _solve(seating_input).assignments}
        assert tables["s1"] != tables["s2"]

    def test_forced_avoid_pair_is_penalized(self):
        seating_input = SeatingInput(
            students=_students(2),
            preferences=[Preference(student_id="s1", other_student_id="s2", preference_type="avoid")],
            layout=_layout(1, 1),
        )
        solution = _solve(seating_input)
        assert len(solution.assignments) == 2
        assert solution.penalties == {"avoid_s1_s2_T1": 1000}
        assert solution.objective_value == 2 * (100000 + 10000) - 1000

    def test_same_agency_separated(self):
        seating_input = SeatingInput(students=_students(2, agency="County EMS"), layout=_layout(1, 2))
        tables = {a.table_number for a in _solve(seating_input).assignments}
        assert tables == {1, 2}

    def test_prefer_near_pair_together(self):
        seating_input = SeatingInput(
            students=_students(2),
            preferences=[Preference(student_id="s1", other_student_id="s2", preference_type="prefer_near")],
            layout=_layout(1, 2),
        )
        tables = {a.table_number for a in _solve(seating_input).assignments}
        assert len(tables) == 1

    def test_zone_matching(self):
        seating_input = SeatingInput(
            students=_students(2),
            learning_styles=[
                LearningStyle(student_id="s1", primary_style="kinesthetic"),
                LearningStyle(student_id="s2", primary_style="audio"),
            ],
            layout=_layout(2, 1, seats=1),
        )
        tables = {a.student_id: a.table_number for a in _solve(seating_input).assignments}
        assert tables == {"s1": 2, "s2": 1}

    def test_overflow_only_when_tables_full(self):
        solution = _solve(SeatingInput(students=_students(4), layout=_layout(1, 1, overflow=1)))
        assert len(solution.assignments) == 4
        assert sum(1 for a in solution.assignments if a.is_overflow) == 1

    def test_over_capacity_leaves_unplaced(self):
        solution = _solve(SeatingInput(students=_students(5), layout=_layout(1, 1, overflow=1)))
        assert solution.status == SolverStatus.OPTIMAL
        assert len(solution.assignments) == 4
        assert len(solution.unplaced) == 1

    def test_unique_seats(self):
        solution = _solve(generate_small_cohort(seed=3))
        slots = [a.slot for a in solution.assignments]
        students = [a.student_id for a in solution.assignments]
        assert len(slots) == len(set(slots))
        assert len(students) == len(set(students))

    def test_deterministic(self):
        cohort = generate_small_cohort(seed=5)
        assert _solve(cohort).assignments == _solve(cohort).assignments

    def test_deterministic_under_tight_budget(self):
        cohort = generate_sample_cohort(GeneratorConfig(num_students=24, seed=11, num_avoid=6, num_prefer_near=6))
        first = _solve(cohort, time_limit_seconds=1)
        second = _solve(cohort, time_limit_seconds=1)
        assert first.status == second.status
        assert first.assignments == second.assignments

    def test_small_room_solves_to_optimality(self):
        layout = ClassroomLayout(num_rows=3, tables_per_row=2, seats_per_table=3, overflow_seats=3)
        cohort = generate_sample_cohort(GeneratorConfig(num_students=10, seed=4, layout=layout))
        solution = _solve(cohort)
        assert solution.status == SolverStatus.OPTIMAL
        assert len(solution.assignments) == 10
        assert not any(a.is_overflow for a in solution.assignments)

    def test_seats_handed_out_in_roster_order(self):
        solution = _solve(SeatingInput(students=_students(4), layout=_layout(1, 1, overflow=2)))
        seats = [(a.student_id, a.table_number, a.seat_position, a.is_overflow) for a in solution.assignments]
        at_table = [s for s in seats if not s[3]]
        assert [s[2] for s in at_table] == [1, 2, 3]
        assert [s[0] for s in at_table] == sorted((s[0] for s in at_table), key=lambda sid: int(sid[1:]))
        assert [s[2] for s in seats if s[3]] == [1]
