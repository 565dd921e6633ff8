"""
Pydantic models for the seating-chart data model.

Mirrors the rows the lab-management application stores for a cohort:
students, learning-style assessments, pairwise seating preferences and
seat assignments, plus the classroom layout the chart is drawn on.

Layout conventions:
- Rows are numbered 1..num_rows from the front of the room
- Tables are numbered 1..N left to right, front to back
- Seats at a table are numbered 1..seats_per_table
- Overflow seats use table 0 and row num_rows + 1
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants and Enums
# =============================================================================

class PrimaryStyle(str, Enum):
    """Dominant learning modality from the learning-style assessment."""
    AUDIO = "audio"
    VISUAL = "visual"
    KINESTHETIC = "kinesthetic"


class SocialStyle(str, Enum):
    """Whether a student learns better with others or alone."""
    SOCIAL = "social"
    INDEPENDENT = "independent"


class PreferenceType(str, Enum):
    """Type of a pairwise seating preference."""
    AVOID = "avoid"
    PREFER_NEAR = "prefer_near"


class Zone(str, Enum):
    """Row-derived region of the classroom."""
    FRONT = "front"
    MIDDLE = "middle"
    BACK = "back"


class Side(str, Enum):
    """Horizontal position of a table within its row."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Strategy(str, Enum):
    """Seat assignment strategy."""
    GREEDY = "greedy"
    CP_SAT = "cp-sat"


OVERFLOW_TABLE_NUMBER = 0


# =============================================================================
# Core Entity Models
# =============================================================================

class Student(BaseModel):
    """An active student in the cohort being seated."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    first_name: str = Field(min_length=1, description="First name")
    last_name: str = Field(default="", description="Last name")
    agency: Optional[str] = Field(default=None, description="Sponsoring agency")
    status: str = Field(default="active", description="Enrollment status")

    @field_validator("agency")
    @classmethod
    def normalize_agency(cls, value: Optional[str]) -> Optional[str]:
        """Treat blank agencies as no agency."""
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class LearningStyle(BaseModel):
    """Learning-style assessment for one student."""
    model_config = ConfigDict(extra="forbid")

    student_id: str = Field(min_length=1, description="Student ID")
    primary_style: Optional[PrimaryStyle] = Field(default=None, description="Audio, visual or kinesthetic")
    social_style: Optional[SocialStyle] = Field(default=None, description="Social or independent")
    processing_style: Optional[str] = Field(default=None, description="Processing style (informational)")
    structure_style: Optional[str] = Field(default=None, description="Structure style (informational)")


class Preference(BaseModel):
    """
    A seating preference between two students.

    Stored directionally but meaningful as an unordered pair.
    """
    model_config = ConfigDict(extra="forbid")

    student_id: str = Field(min_length=1, description="Student ID")
    other_student_id: str = Field(min_length=1, description="Other student ID")
    preference_type: PreferenceType = Field(description="avoid or prefer_near")
    reason: Optional[str] = Field(default=None, description="Why the preference was recorded")

    @model_validator(mode="after")
    def validate_not_self(self) -> "Preference":
        """A student cannot have a preference about themselves."""
        if self.student_id == self.other_student_id:
            raise ValueError(
                f"student_id and other_student_id must differ (got '{self.student_id}')"
            )
        return self

    @property
    def pair(self) -> frozenset[str]:
        return frozenset((self.student_id, self.other_student_id))


class ClassroomLayout(BaseModel):
    """
    Fixed classroom shape: rows of tables plus an overflow bank.

    The defaults describe the paramedic lab classroom: four rows of two
    tables (1-2 front, 3-6 middle, 7-8 back), three seats per table and
    three overflow seats along the back wall.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, description="Classroom name")
    num_rows: int = Field(default=4, ge=0, le=50, description="Number of table rows")
    tables_per_row: int = Field(default=2, ge=0, le=50, description="Tables in each row")
    seats_per_table: int = Field(default=3, ge=1, le=20, description="Seats at each table")
    overflow_seats: int = Field(default=3, ge=0, le=100, description="Seats not bound to a table")

    @property
    def num_tables(self) -> int:
        return self.num_rows * self.tables_per_row

    @property
    def regular_capacity(self) -> int:
        return self.num_tables * self.seats_per_table

    @property
    def total_capacity(self) -> int:
        return self.regular_capacity + self.overflow_seats

    @property
    def overflow_row_number(self) -> int:
        return self.num_rows + 1


class Assignment(BaseModel):
    """A student seated at one seat of a chart."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    student_id: str = Field(min_length=1, description="Student ID")
    table_number: int = Field(ge=0, description="Table number (0 for overflow)")
    seat_position: int = Field(ge=1, description="Seat at the table, from 1")
    row_number: int = Field(ge=1, description="Row number, from the front")
    is_overflow: bool = Field(default=False, description="Seat is in the overflow bank")
    is_manual_override: bool = Field(default=False, description="Placed by hand rather than generated")

    @property
    def slot(self) -> tuple[int, int, bool]:
        """Seat identity: (table_number, seat_position, is_overflow)."""
        return (self.table_number, self.seat_position, self.is_overflow)


# =============================================================================
# Configuration Models
# =============================================================================

class SeatingConfig(BaseModel):
    """Per-run configuration carried with the input."""
    model_config = ConfigDict(extra="forbid")

    strategy: Strategy = Field(default=Strategy.GREEDY, description="Assignment strategy")
    time_limit_seconds: int = Field(default=10, ge=1, le=600, description="CP-SAT search budget in deterministic seconds")
    require_students: bool = Field(default=False, description="Reject an empty roster")
    weights: dict[str, int] = Field(default_factory=dict, description="Scoring weight overrides")


# =============================================================================
# Main Input Model
# =============================================================================

class SeatingInput(BaseModel):
    """
    Everything one generation run needs: roster, constraints and layout.

    Learning styles and preferences that reference students outside the
    roster are dropped, since the application fetches preferences where
    either side belongs to the cohort.
    """
    model_config = ConfigDict(extra="forbid")

    cohort_id: Optional[str] = Field(default=None, description="Cohort ID")
    classroom_id: Optional[str] = Field(default=None, description="Classroom ID")

    students: list[Student] = Field(default_factory=list, description="Active students")
    learning_styles: list[LearningStyle] = Field(default_factory=list, description="Learning-style records")
    preferences: list[Preference] = Field(default_factory=list, description="Pairwise seating preferences")
    layout: ClassroomLayout = Field(default_factory=ClassroomLayout, description="Classroom layout")
    config: SeatingConfig = Field(default_factory=SeatingConfig, description="Run configuration")

    _student_map: dict[str, Student] = {}
    _style_map: dict[str, LearningStyle] = {}

    def model_post_init(self, __context: Any) -> None:
        """Build lookup maps after model initialization."""
        self._student_map = {s.id: s for s in self.students}
        self._style_map = {ls.student_id: ls for ls in self.learning_styles}

    @model_validator(mode="after")
    def validate_unique_records(self) -> "SeatingInput":
        """Ensure one roster entry and at most one learning style per student."""
        errors: list[str] = []

        seen: set[str] = set()
        for student in self.students:
            if student.id in seen:
                errors.append(f"Duplicate student ID: '{student.id}'")
            seen.add(student.id)

        seen_styles: set[str] = set()
        for style in self.learning_styles:
            if style.student_id in seen_styles:
                errors.append(f"Student '{style.student_id}' has more than one learning style record")
            seen_styles.add(style.student_id)

        if errors:
            raise ValueError("Duplicate record validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        return self

    @model_validator(mode="after")
    def drop_foreign_records(self) -> "SeatingInput":
        """Drop learning styles and preferences for students outside the roster."""
        roster = {s.id for s in self.students}

        styles = [ls for ls in self.learning_styles if ls.student_id in roster]
        preferences = [
            p for p in self.preferences
            if p.student_id in roster and p.other_student_id in roster
        ]

        dropped = (len(self.learning_styles) - len(styles)) + (len(self.preferences) - len(preferences))
        if dropped:
            logger.debug("Dropped %d record(s) referencing students outside the roster", dropped)
            self.learning_styles = styles
            self.preferences = preferences

        return self

    # -------------------------------------------------------------------------
    # Lookup Methods
    # -------------------------------------------------------------------------

    def get_student(self, student_id: str) -> Optional[Student]:
        """Get student by ID."""
        return self._student_map.get(student_id)

    def get_learning_style(self, student_id: str) -> Optional[LearningStyle]:
        """Get a student's learning style record, if assessed."""
        return self._style_map.get(student_id)

    def student_name(self, student_id: str) -> str:
        """Display name for a student, falling back to the ID."""
        student = self.get_student(student_id)
        return student.name if student else student_id

    def summary(self) -> dict[str, Any]:
        """Get a summary of the input data."""
        return {
            "cohort_id": self.cohort_id,
            "classroom_id": self.classroom_id,
            "students": len(self.students),
            "learning_styles": len(self.learning_styles),
            "preferences": len(self.preferences),
            "avoid_preferences": sum(
                1 for p in self.preferences if p.preference_type == PreferenceType.AVOID
            ),
            "tables": self.layout.num_tables,
            "regular_capacity": self.layout.regular_capacity,
            "overflow_seats": self.layout.overflow_seats,
            "total_capacity": self.layout.total_capacity,
        }
