"""
Output schema for generated seating charts.

Defines the JSON the application persists and renders: the assignment
list (enriched with names for display), unplaced students, warnings and
diagnostic counts. Field names are camelCase on the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from seating.data.models import Assignment, SeatingInput, Strategy
from seating.diagnostics import DiagnosticStats
from seating.layout import SeatMap


# =============================================================================
# Enums
# =============================================================================

class OutputStatus(str, Enum):
    """Chart status for output."""
    COMPLETE = "complete"  # Every student seated
    PARTIAL = "partial"  # Some students could not be seated


# =============================================================================
# Assignment Output
# =============================================================================

class AssignmentOutput(BaseModel):
    """A single seat assignment in the output."""
    student_id: str = Field(alias="studentId")
    table_number: int = Field(alias="tableNumber")
    seat_position: int = Field(alias="seatPosition")
    row_number: int = Field(alias="rowNumber")
    is_overflow: bool = Field(default=False, alias="isOverflow")
    is_manual_override: bool = Field(default=False, alias="isManualOverride")

    # Optional enriched data
    student_name: Optional[str] = Field(default=None, alias="studentName")
    agency: Optional[str] = Field(default=None)
    zone: Optional[str] = Field(default=None)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_assignment(
        cls,
        assignment: Assignment,
        seating_input: SeatingInput | None = None,
        seat_map: SeatMap | None = None,
    ) -> AssignmentOutput:
        """Create from an Assignment, enriched from the input when given."""
        student = seating_input.get_student(assignment.student_id) if seating_input else None
        slot = (
            seat_map.get_slot(assignment.table_number, assignment.seat_position, assignment.is_overflow)
            if seat_map else None
        )
        return cls(
            studentId=assignment.student_id,
            tableNumber=assignment.table_number,
            seatPosition=assignment.seat_position,
            rowNumber=assignment.row_number,
            isOverflow=assignment.is_overflow,
            isManualOverride=assignment.is_manual_override,
            studentName=student.name if student else None,
            agency=student.agency if student else None,
            zone=slot.zone.value if slot and slot.zone else None,
        )

    def to_assignment(self) -> Assignment:
        return Assignment(
            student_id=self.student_id,
            table_number=self.table_number,
            seat_position=self.seat_position,
            row_number=self.row_number,
            is_overflow=self.is_overflow,
            is_manual_override=self.is_manual_override,
        )


class UnplacedStudentOutput(BaseModel):
    """A student the chart could not seat."""
    student_id: str = Field(alias="studentId")
    student_name: Optional[str] = Field(default=None, alias="studentName")

    model_config = {"populate_by_name": True}


# =============================================================================
# Stats
# =============================================================================

class StatsOutput(BaseModel):
    """Diagnostic counts for the chart."""
    total_students: int = Field(alias="totalStudents")
    placed: int
    unplaced: int
    in_overflow: int = Field(alias="inOverflow")
    agency_conflicts: int = Field(alias="agencyConflicts")
    avoidance_conflicts: int = Field(alias="avoidanceConflicts")
    zone_matches: int = Field(default=0, alias="zoneMatches")
    by_learning_style: dict[str, int] = Field(default_factory=dict, alias="byLearningStyle")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_stats(cls, stats: DiagnosticStats) -> StatsOutput:
        return cls.model_validate(stats.to_dict())


# =============================================================================
# Complete Output
# =============================================================================

class SeatingChartOutput(BaseModel):
    """Complete output for a generated or edited chart."""
    status: OutputStatus
    strategy: Strategy = Strategy.GREEDY
    cohort_id: Optional[str] = Field(default=None, alias="cohortId")
    classroom_id: Optional[str] = Field(default=None, alias="classroomId")
    solve_time_seconds: float = Field(default=0.0, alias="solveTimeSeconds")
    assignments: list[AssignmentOutput] = Field(default_factory=list)
    unplaced: list[UnplacedStudentOutput] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    stats: StatsOutput

    model_config = {"populate_by_name": True}

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True, mode="json")

    def to_assignments(self) -> list[Assignment]:
        """Plain assignments, e.g. to feed back into manual edits."""
        return [a.to_assignment() for a in self.assignments]


# =============================================================================
# Conversion Functions
# =============================================================================

def create_chart_output(result, seating_input: SeatingInput) -> SeatingChartOutput:
    """
    Build the output document for a generation result.

    Args:
        result: SeatingResult from generate_seating
        seating_input: The input the result was generated from

    Returns:
        SeatingChartOutput ready to serialize
    """
    return build_chart_output(
        assignments=result.assignments,
        unplaced=result.unplaced,
        warnings=result.warnings,
        stats=result.stats,
        seating_input=seating_input,
        strategy=result.strategy,
        solve_time_ms=result.solve_time_ms,
    )


def build_chart_output(
    assignments: list[Assignment],
    unplaced: list[str],
    warnings: list[str],
    stats: DiagnosticStats,
    seating_input: SeatingInput,
    strategy: Strategy = Strategy.GREEDY,
    solve_time_ms: int = 0,
) -> SeatingChartOutput:
    """Build the output document from its parts (also used after manual edits)."""
    seat_map = SeatMap(seating_input.layout)
    return SeatingChartOutput(
        status=OutputStatus.COMPLETE if not unplaced else OutputStatus.PARTIAL,
        strategy=strategy,
        cohortId=seating_input.cohort_id,
        classroomId=seating_input.classroom_id,
        solveTimeSeconds=solve_time_ms / 1000.0,
        assignments=[
            AssignmentOutput.from_assignment(a, seating_input, seat_map) for a in assignments
        ],
        unplaced=[
            UnplacedStudentOutput(studentId=sid, studentName=seating_input.student_name(sid))
            for sid in unplaced
        ],
        warnings=list(warnings),
        stats=StatsOutput.from_stats(stats),
    )


def load_chart_output(data: dict[str, Any]) -> SeatingChartOutput:
    """Validate a chart output dictionary (e.g. read back from JSON)."""
    return SeatingChartOutput.model_validate(data)
