"""
CP-SAT model builder for seating charts.

An optimizing alternative to the greedy engine over the same scoring
model. Each (student, table) pair is a boolean variable:

    at_table[student, table] = 1 if the student sits at that table

plus in_overflow[student] for the overflow bank. Seat positions carry no
score, so they are handed out after solving in roster order. Avoid
and agency constraints become penalties rather than hard constraints, so
the model is always feasible and every student the room can hold is
seated.

The solver runs single-threaded with a fixed seed and stops on a
deterministic time budget, so reruns on unchanged input return the same
chart even when the budget runs out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ortools.sat.python import cp_model

from .constraints import (
    ConstraintIndex,
    ConstraintWeights,
    PlacementVars,
    SeatingConstraintStats,
    add_all_seating_constraints,
)
from .data.models import Assignment, SeatingInput
from .layout import SeatMap

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes for Variables and Solutions
# =============================================================================

@dataclass
class ObjectiveTerm:
    """A weighted term of the maximized objective (negative weight = penalty)."""
    name: str
    var: cp_model.IntVar
    weight: int
    description: str


class SolverStatus(str, Enum):
    """Solver result status."""
    OPTIMAL = "OPTIMAL"
    FEASIBLE = "FEASIBLE"
    INFEASIBLE = "INFEASIBLE"
    MODEL_INVALID = "MODEL_INVALID"
    UNKNOWN = "UNKNOWN"


@dataclass
class OptimizerSolution:
    """Complete solver solution."""
    status: SolverStatus
    assignments: list[Assignment]
    unplaced: list[str]
    solve_time_ms: int
    objective_value: Optional[int] = None
    penalties: dict[str, int] = field(default_factory=dict)

    @property
    def is_feasible(self) -> bool:
        return self.status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE)


# =============================================================================
# Main Model Builder
# =============================================================================

class SeatingModelBuilder:
    """
    Builds and solves a CP-SAT model for a seating chart.

    Usage:
        builder = SeatingModelBuilder(seating_input)
        builder.create_variables()
        builder.add_constraints()
        builder.set_objective()
        solution = builder.solve(time_limit_seconds=10)
    """

    def __init__(
        self,
        seating_input: SeatingInput,
        weights: ConstraintWeights | None = None,
        index: ConstraintIndex | None = None,
        seat_map: SeatMap | None = None,
    ):
        """
        Initialize the model builder.

        Args:
            seating_input: Validated SeatingInput
            weights: Scoring weights (defaults if None)
            index: Prebuilt constraint index (built from input if None)
            seat_map: Prebuilt seat map (built from the layout if None)
        """
        self.input = seating_input
        self.weights = weights or ConstraintWeights()
        self.index = index or ConstraintIndex.from_input(seating_input, self.weights)
        self.seat_map = seat_map or SeatMap(seating_input.layout)
        self.model = cp_model.CpModel()

        # Variable storage
        self.placement_vars: dict[str, PlacementVars] = {}
        self.objective_terms: list[ObjectiveTerm] = []
        self.stats: Optional[SeatingConstraintStats] = None

        # State tracking
        self._variables_created = False
        self._constraints_added = False
        self._objective_set = False

    # -------------------------------------------------------------------------
    # Variable Creation
    # -------------------------------------------------------------------------

    def create_variables(self) -> None:
        """Create at_table[student, table] and in_overflow[student] variables."""
        if self._variables_created:
            return

        has_overflow = self.input.layout.overflow_seats > 0
        for student in self.input.students:
            sid = student.id
            tables = {
                table: self.model.NewBoolVar(f"at_{sid}_T{table}")
                for table in sorted(self.seat_map.tables)
            }
            overflow = self.model.NewBoolVar(f"overflow_{sid}") if has_overflow else None
            self.placement_vars[sid] = PlacementVars(student_id=sid, tables=tables, overflow=overflow)

        self._variables_created = True

    # -------------------------------------------------------------------------
    # Constraint Addition
    # -------------------------------------------------------------------------

    def add_constraints(self) -> None:
        """Add all constraints and objective terms to the model."""
        if not self._variables_created:
            raise RuntimeError("Must call create_variables() before add_constraints()")

        if self._constraints_added:
            return

        self.stats = add_all_seating_constraints(self)
        self._constraints_added = True

    def add_objective_term(self, name: str, var: cp_model.IntVar, weight: int, description: str) -> None:
        self.objective_terms.append(ObjectiveTerm(
            name=name, var=var, weight=weight, description=description,
        ))

    # -------------------------------------------------------------------------
    # Objective Function
    # -------------------------------------------------------------------------

    def set_objective(self) -> None:
        """Maximize the weighted sum of all objective terms."""
        if not self._constraints_added:
            raise RuntimeError("Must call add_constraints() before set_objective()")

        if self._objective_set:
            return

        if self.objective_terms:
            self.model.Maximize(sum(t.var * t.weight for t in self.objective_terms))

        self._objective_set = True

    # -------------------------------------------------------------------------
    # Solving
    # -------------------------------------------------------------------------

    def solve(self, time_limit_seconds: int = 10, random_seed: int = 0) -> OptimizerSolution:
        """
        Solve the seating model.

        Args:
            time_limit_seconds: Search budget in deterministic seconds
            random_seed: Solver seed

        Returns:
            OptimizerSolution with status and assignments
        """
        if not self._variables_created:
            self.create_variables()
        if not self._constraints_added:
            self.add_constraints()
        if not self._objective_set:
            self.set_objective()

        solver = cp_model.CpSolver()
        solver.parameters.max_deterministic_time = float(time_limit_seconds)
        solver.parameters.num_workers = 1  # Deterministic search
        solver.parameters.random_seed = random_seed
        solver.parameters.log_search_progress = False

        status_code = solver.Solve(self.model)

        status_map = {
            cp_model.OPTIMAL: SolverStatus.OPTIMAL,
            cp_model.FEASIBLE: SolverStatus.FEASIBLE,
            cp_model.INFEASIBLE: SolverStatus.INFEASIBLE,
            cp_model.MODEL_INVALID: SolverStatus.MODEL_INVALID,
            cp_model.UNKNOWN: SolverStatus.UNKNOWN,
        }
        status = status_map.get(status_code, SolverStatus.UNKNOWN)
        logger.debug("CP-SAT finished with %s in %.3fs", status.value, solver.WallTime())

        assignments: list[Assignment] = []
        unplaced: list[str] = [s.id for s in self.input.students]
        penalties: dict[str, int] = {}

        if status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE):
            assignments = self._extract_assignments(solver)
            seated = {a.student_id for a in assignments}
            unplaced = [s.id for s in self.input.students if s.id not in seated]
            penalties = self._extract_penalties(solver)

        return OptimizerSolution(
            status=status,
            assignments=assignments,
            unplaced=unplaced,
            solve_time_ms=int(solver.WallTime() * 1000),
            objective_value=round(solver.ObjectiveValue()) if status == SolverStatus.OPTIMAL else None,
            penalties=penalties,
        )

    def _extract_assignments(self, solver: cp_model.CpSolver) -> list[Assignment]:
        """Hand out seats at each table, and in the overflow bank, in roster order."""
        seated_at: dict[int, list[str]] = {table: [] for table in self.seat_map.tables}
        in_overflow: list[str] = []

        for student in self.input.students:
            pv = self.placement_vars[student.id]
            if pv.overflow is not None and solver.Value(pv.overflow) == 1:
                in_overflow.append(student.id)
                continue
            for table in sorted(pv.tables):
                if solver.Value(pv.tables[table]) == 1:
                    seated_at[table].append(student.id)
                    break

        assignments = []
        for table in sorted(seated_at):
            slots = self.seat_map.slots_for_table(table)
            for slot, student_id in zip(slots, seated_at[table]):
                assignments.append(slot.to_assignment(student_id))
        for slot, student_id in zip(self.seat_map.overflow_slots, in_overflow):
            assignments.append(slot.to_assignment(student_id))

        return assignments

    def _extract_penalties(self, solver: cp_model.CpSolver) -> dict[str, int]:
        """Extract the penalty terms that fired."""
        penalties = {}
        for term in self.objective_terms:
            if term.weight < 0 and solver.Value(term.var) > 0:
                penalties[term.name] = -term.weight * solver.Value(term.var)
        return penalties

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def get_statistics(self) -> dict[str, Any]:
        """Get model statistics."""
        return {
            "num_students": len(self.input.students),
            "num_seats": self.seat_map.capacity,
            "num_tables": len(self.seat_map.tables),
            "num_placement_vars": sum(len(pv.all_vars()) for pv in self.placement_vars.values()),
            "num_objective_terms": len(self.objective_terms),
            "variables_created": self._variables_created,
            "constraints_added": self._constraints_added,
            "objective_set": self._objective_set,
        }
