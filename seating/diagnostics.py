"""
Diagnostics for a generated or edited seating chart.

Turns an assignment list into human-readable warnings and summary counts.
Conflict counts are instances: each avoid pair or same-agency pair that
shares a table counts once, however many students are involved overall.
Overflow seats have no tablemates and never conflict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Sequence

from .constraints import ConstraintIndex, table_occupancy
from .data.models import Assignment, PrimaryStyle, SeatingInput
from .layout import SeatMap


@dataclass
class PairConflict:
    """Two students sharing a table when they should not."""
    table_number: int
    student_id: str
    other_student_id: str
    agency: str | None = None


@dataclass
class DiagnosticStats:
    """Summary counts for a chart."""
    total_students: int = 0
    placed: int = 0
    unplaced: int = 0
    in_overflow: int = 0
    agency_conflicts: int = 0
    avoidance_conflicts: int = 0
    zone_matches: int = 0
    by_learning_style: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalStudents": self.total_students,
            "placed": self.placed,
            "unplaced": self.unplaced,
            "inOverflow": self.in_overflow,
            "agencyConflicts": self.agency_conflicts,
            "avoidanceConflicts": self.avoidance_conflicts,
            "zoneMatches": self.zone_matches,
            "byLearningStyle": dict(self.by_learning_style),
        }


@dataclass
class Diagnostics:
    """Warnings plus stats for a chart."""
    warnings: list[str]
    stats: DiagnosticStats
    avoid_conflicts: list[PairConflict] = field(default_factory=list)
    agency_conflicts: list[PairConflict] = field(default_factory=list)


class DiagnosticsReporter:
    """
    Audits an assignment list against the roster and constraint index.

    Usage:
        reporter = DiagnosticsReporter(seating_input, index)
        diagnostics = reporter.report(assignments, unplaced)
    """

    def __init__(
        self,
        seating_input: SeatingInput,
        index: ConstraintIndex | None = None,
        seat_map: SeatMap | None = None,
    ):
        self.input = seating_input
        self.index = index or ConstraintIndex.from_input(seating_input)
        self.seat_map = seat_map or SeatMap(seating_input.layout)

    def report(self, assignments: Sequence[Assignment], unplaced: Sequence[str] | None = None) -> Diagnostics:
        """
        Build warnings and stats for ``assignments``.

        Args:
            assignments: Seat assignments to audit
            unplaced: Students left without a seat; derived from the roster if None
        """
        seated = {a.student_id for a in assignments}
        if unplaced is None:
            unplaced = [s.id for s in self.input.students if s.id not in seated]

        avoid_conflicts = self.find_avoid_conflicts(assignments)
        agency_conflicts = self.find_agency_conflicts(assignments)

        warnings: list[str] = []
        warnings.extend(self._capacity_warnings())
        for student_id in unplaced:
            warnings.append(
                f"Could not place {self.input.student_name(student_id)}: "
                f"no open seat left (max capacity exceeded)"
            )
        for c in avoid_conflicts:
            warnings.append(
                f"Conflict: {self.input.student_name(c.student_id)} and "
                f"{self.input.student_name(c.other_student_id)} are seated together "
                f"at table {c.table_number} despite an avoid preference"
            )
        for c in agency_conflicts:
            warnings.append(
                f"{self.input.student_name(c.student_id)} and "
                f"{self.input.student_name(c.other_student_id)} share table "
                f"{c.table_number} and the same agency ({c.agency})"
            )

        stats = DiagnosticStats(
            total_students=len(self.input.students),
            placed=len(assignments),
            unplaced=len(unplaced),
            in_overflow=sum(1 for a in assignments if a.is_overflow),
            agency_conflicts=len(agency_conflicts),
            avoidance_conflicts=len(avoid_conflicts),
            zone_matches=self._count_zone_matches(assignments),
            by_learning_style=self._count_learning_styles(),
        )

        return Diagnostics(
            warnings=warnings,
            stats=stats,
            avoid_conflicts=avoid_conflicts,
            agency_conflicts=agency_conflicts,
        )

    # -------------------------------------------------------------------------
    # Conflict Detection
    # -------------------------------------------------------------------------

    def find_avoid_conflicts(self, assignments: Sequence[Assignment]) -> list[PairConflict]:
        """Every avoid pair seated at the same table, once per pair."""
        conflicts = []
        for table, occupants in sorted(table_occupancy(assignments).items()):
            for a, b in combinations(occupants, 2):
                if self.index.should_avoid(a, b):
                    conflicts.append(PairConflict(table, a, b))
        return conflicts

    def find_agency_conflicts(self, assignments: Sequence[Assignment]) -> list[PairConflict]:
        """Every same-agency pair seated at the same table, once per pair."""
        conflicts = []
        for table, occupants in sorted(table_occupancy(assignments).items()):
            for a, b in combinations(occupants, 2):
                agency = self.index.agency_of(a)
                if agency and agency == self.index.agency_of(b):
                    conflicts.append(PairConflict(table, a, b, agency=agency))
        return conflicts

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _capacity_warnings(self) -> list[str]:
        total = len(self.input.students)
        capacity = self.seat_map.capacity
        if total > capacity:
            return [f"Cohort of {total} students exceeds classroom capacity of {capacity} seats"]
        return []

    def _count_zone_matches(self, assignments: Sequence[Assignment]) -> int:
        matches = 0
        for a in assignments:
            if a.is_overflow:
                continue
            slot = self.seat_map.get_slot(a.table_number, a.seat_position)
            preferred = self.index.preferred_zone(a.student_id)
            if slot is not None and preferred is not None and slot.zone == preferred:
                matches += 1
        return matches

    def _count_learning_styles(self) -> dict[str, int]:
        counts = {style.value: 0 for style in PrimaryStyle}
        counts["unassessed"] = 0
        for student in self.input.students:
            style = self.input.get_learning_style(student.id)
            if style is None or style.primary_style is None:
                counts["unassessed"] += 1
            else:
                counts[style.primary_style.value] += 1
        return counts
