"""
CP-SAT constraints for the optimizing seating strategy.

The model places students at tables, not seats: seats at one table are
interchangeable for scoring, so seat positions are handed out after
solving.

Hard constraints:
- Each student sits at most at one table or in the overflow bank
- A table holds at most seats_per_table students
- The overflow bank holds at most overflow_seats students

Everything else is an objective term, so an over-constrained cohort still
produces a best-effort chart:
- Rewards for seating a student at all, and at a table rather than overflow
- Rewards for zone and side matches, and for prefer-near partners sharing a table
- Penalties for avoid partners or same-agency students sharing a table
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import TYPE_CHECKING, Optional

from ortools.sat.python import cp_model

if TYPE_CHECKING:
    from seating.optimizer import SeatingModelBuilder


@dataclass
class PlacementVars:
    """Placement variables for one student."""
    student_id: str
    tables: dict[int, cp_model.IntVar]  # table -> at_table[student, table]
    overflow: Optional[cp_model.IntVar] = None  # in_overflow[student]

    def all_vars(self) -> list[cp_model.IntVar]:
        placed = [self.tables[t] for t in sorted(self.tables)]
        if self.overflow is not None:
            placed.append(self.overflow)
        return placed


@dataclass
class SeatingConstraintStats:
    """Statistics about constraints and objective terms added."""
    student_constraints: int = 0
    table_capacity: int = 0
    overflow_capacity: int = 0
    placement_rewards: int = 0
    avoid_penalties: int = 0
    agency_penalties: int = 0
    prefer_near_rewards: int = 0


def add_one_place_per_student(builder: SeatingModelBuilder) -> int:
    """
    A student sits at most at one table or in the overflow bank.

    At most, not exactly: a cohort larger than the room leaves students
    unplaced instead of making the model infeasible.
    """
    added = 0
    for pv in builder.placement_vars.values():
        placed = pv.all_vars()
        if placed:
            builder.model.AddAtMostOne(placed)
            added += 1
    return added


def add_table_capacity(builder: SeatingModelBuilder) -> int:
    """A table holds at most seats_per_table students."""
    seats = builder.input.layout.seats_per_table
    added = 0
    for table in builder.seat_map.tables:
        at_table = [pv.tables[table] for pv in builder.placement_vars.values() if table in pv.tables]
        if len(at_table) > seats:
            builder.model.Add(sum(at_table) <= seats)
            added += 1
    return added


def add_overflow_capacity(builder: SeatingModelBuilder) -> int:
    """The overflow bank holds at most overflow_seats students."""
    in_overflow = [pv.overflow for pv in builder.placement_vars.values() if pv.overflow is not None]
    if len(in_overflow) > builder.input.layout.overflow_seats:
        builder.model.Add(sum(in_overflow) <= builder.input.layout.overflow_seats)
        return 1
    return 0


def add_placement_rewards(builder: SeatingModelBuilder) -> int:
    """
    Reward every placement variable by what the place is worth to its student.

    Placement dominates, then a table over overflow, then zone and side
    matches from the constraint index.
    """
    w = builder.weights
    index = builder.index
    added = 0

    for student_id, pv in builder.placement_vars.items():
        for table in sorted(pv.tables):
            slot = builder.seat_map.slots_for_table(table)[0]
            value = (
                w.placement
                + w.regular_seat
                + index.affinity_score(student_id, slot.zone)
                + index.side_score(student_id, slot.side)
            )
            builder.add_objective_term(
                name=f"table_{student_id}_T{table}",
                var=pv.tables[table],
                weight=value,
                description=f"Seat {student_id} at table {table}",
            )
            added += 1

        if pv.overflow is not None:
            builder.add_objective_term(
                name=f"overflow_{student_id}",
                var=pv.overflow,
                weight=w.placement,
                description=f"Seat {student_id} in overflow",
            )
            added += 1

    return added


def add_avoid_penalties(builder: SeatingModelBuilder) -> int:
    """Penalize each avoid pair that shares a table."""
    added = 0
    for a, b in builder.index.avoid_pairs():
        added += _add_pair_terms(
            builder, a, b,
            weight=-builder.weights.avoid_pair,
            label="avoid",
            description=f"{a} and {b} should avoid each other",
        )
    return added


def add_agency_penalties(builder: SeatingModelBuilder) -> int:
    """Penalize each pair of same-agency students that shares a table."""
    by_agency: dict[str, list[str]] = {}
    for student in builder.input.students:
        if student.agency:
            by_agency.setdefault(student.agency, []).append(student.id)

    added = 0
    for agency, members in by_agency.items():
        for a, b in combinations(members, 2):
            added += _add_pair_terms(
                builder, a, b,
                weight=-builder.weights.agency_clustering,
                label="agency",
                description=f"{a} and {b} share agency {agency}",
            )
    return added


def add_prefer_near_rewards(builder: SeatingModelBuilder) -> int:
    """Reward each prefer-near pair that shares a table."""
    added = 0
    for a, b in builder.index.prefer_near_pairs():
        added += _add_pair_terms(
            builder, a, b,
            weight=builder.weights.prefer_near,
            label="near",
            description=f"{a} and {b} prefer to sit together",
        )
    return added


def add_all_seating_constraints(builder: SeatingModelBuilder) -> SeatingConstraintStats:
    """Add every hard constraint and objective term to the model."""
    stats = SeatingConstraintStats()
    stats.student_constraints = add_one_place_per_student(builder)
    stats.table_capacity = add_table_capacity(builder)
    stats.overflow_capacity = add_overflow_capacity(builder)
    stats.placement_rewards = add_placement_rewards(builder)
    stats.avoid_penalties = add_avoid_penalties(builder)
    stats.agency_penalties = add_agency_penalties(builder)
    stats.prefer_near_rewards = add_prefer_near_rewards(builder)
    return stats


def _add_pair_terms(
    builder: SeatingModelBuilder,
    a: str,
    b: str,
    weight: int,
    label: str,
    description: str,
) -> int:
    """
    Add one objective term per table for "a and b both sit at this table".

    Penalties (negative weight) only need together >= at_a + at_b - 1;
    rewards only need together <= at_a and together <= at_b. The solver
    pushes the indicator to its tightest value either way.
    """
    if weight == 0:
        return 0

    vars_a = builder.placement_vars[a].tables
    vars_b = builder.placement_vars[b].tables
    added = 0

    for table in sorted(set(vars_a) & set(vars_b)):
        at_a, at_b = vars_a[table], vars_b[table]
        together = builder.model.NewBoolVar(f"{label}_{a}_{b}_T{table}")

        if weight < 0:
            builder.model.Add(together >= at_a + at_b - 1)
        else:
            builder.model.Add(together <= at_a)
            builder.model.Add(together <= at_b)

        builder.add_objective_term(
            name=f"{label}_{a}_{b}_T{table}",
            var=together,
            weight=weight,
            description=f"{description} (table {table})",
        )
        added += 1

    return added
