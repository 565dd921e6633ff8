"""
Sample cohort generator for demos and tests.

Generates a realistic paramedic cohort: students sponsored by a handful
of agencies, learning-style assessments for most of them, and a sprinkle
of avoid / prefer_near preferences.

Usage:
    from seating.data.generator import generate_sample_cohort, generate_small_cohort

    # Generate with custom config
    cohort = generate_sample_cohort(GeneratorConfig(num_students=30))

    # Quick test data
    small_cohort = generate_small_cohort(seed=7)
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .models import (
    ClassroomLayout,
    LearningStyle,
    Preference,
    PreferenceType,
    PrimaryStyle,
    SeatingInput,
    SocialStyle,
    Student,
)


# =============================================================================
# Name Data
# =============================================================================

FIRST_NAMES = [
    "James", "John", "Robert", "Michael", "David", "William", "Richard", "Joseph",
    "Thomas", "Christopher", "Sarah", "Jessica", "Emily", "Ashley", "Amanda",
    "Elizabeth", "Jennifer", "Rachel", "Laura", "Nicole", "Emma", "Olivia",
    "Sophia", "Isabella", "Daniel", "Matthew", "Andrew", "Joshua", "Benjamin",
    "Samuel", "Grace", "Hannah", "Natalie", "Victoria", "Marcus", "Nathan",
    "Ryan", "Kevin", "Brian", "Patrick", "Maria", "Carlos", "Tyler", "Megan",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson",
    "Thomas", "Taylor", "Moore", "Jackson", "Martin", "Lee", "Perez", "Thompson",
    "White", "Harris", "Sanchez", "Clark", "Ramirez", "Lewis", "Robinson", "Walker",
    "Young", "Allen", "King", "Wright", "Scott", "Torres", "Nguyen", "Hill", "Flores",
]

AGENCIES = [
    "Metro Fire",
    "County EMS",
    "Valley Ambulance",
    "Regional Medical Transport",
    "Lakeside Fire District",
]

PROCESSING_STYLES = ["sequential", "global"]
STRUCTURE_STYLES = ["structured", "flexible"]

AVOID_REASONS = [
    "Personal conflict",
    "Distract each other",
    "Requested by student",
    "Instructor observation",
]

PREFER_NEAR_REASONS = [
    "Study partners",
    "Peer mentoring",
    "Same crew at agency",
    "Language support",
]


# =============================================================================
# Generator Configuration
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for cohort generation.

    The default cohort (24 students) fits the standard 4 x 2 x 3 classroom
    exactly, leaving the overflow bank empty.
    """
    num_students: int = 24
    cohort_id: str = "cohort-sample"
    classroom_id: str = "classroom-sample"

    # Share of students with an agency / a learning-style assessment
    agency_ratio: float = 0.8
    assessed_ratio: float = 0.85
    agencies: list[str] = field(default_factory=lambda: list(AGENCIES))

    # Number of preference records
    num_avoid: int = 3
    num_prefer_near: int = 4

    layout: ClassroomLayout = field(default_factory=ClassroomLayout)

    # Randomization
    seed: Optional[int] = None


# =============================================================================
# Generator Functions
# =============================================================================

def generate_sample_cohort(config: GeneratorConfig | None = None) -> SeatingInput:
    """
    Generate a sample cohort seating input.

    Args:
        config: Generator configuration (uses defaults if None)

    Returns:
        SeatingInput with generated data
    """
    if config is None:
        config = GeneratorConfig()

    rng = random.Random(config.seed)

    students = _generate_students(config, rng)
    learning_styles = _generate_learning_styles(config, students, rng)
    preferences = _generate_preferences(config, students, rng)

    return SeatingInput(
        cohort_id=config.cohort_id,
        classroom_id=config.classroom_id,
        students=students,
        learning_styles=learning_styles,
        preferences=preferences,
        layout=config.layout,
    )


def generate_small_cohort(seed: int | None = None) -> SeatingInput:
    """
    Generate a small cohort for quick testing.

    - 9 students across 3 agencies
    - 1 avoid and 1 prefer_near preference
    - 3 rows of 1 table, 3 seats each, 2 overflow seats

    Args:
        seed: Random seed for reproducibility

    Returns:
        SeatingInput with small cohort data
    """
    config = GeneratorConfig(
        num_students=9,
        agencies=AGENCIES[:3],
        num_avoid=1,
        num_prefer_near=1,
        layout=ClassroomLayout(num_rows=3, tables_per_row=1, seats_per_table=3, overflow_seats=2),
        seed=seed,
    )
    return generate_sample_cohort(config)


# =============================================================================
# Private Generator Helpers
# =============================================================================

def _generate_students(config: GeneratorConfig, rng: random.Random) -> list[Student]:
    """Generate students with unique names."""
    students = []
    used_names = set()

    for i in range(config.num_students):
        while True:
            first = rng.choice(FIRST_NAMES)
            last = rng.choice(LAST_NAMES)
            if (first, last) not in used_names or len(used_names) >= len(FIRST_NAMES) * len(LAST_NAMES):
                used_names.add((first, last))
                break

        agency = None
        if config.agencies and rng.random() < config.agency_ratio:
            agency = rng.choice(config.agencies)

        students.append(Student(
            id=f"s{i+1}",
            first_name=first,
            last_name=last,
            agency=agency,
        ))

    return students


def _generate_learning_styles(
    config: GeneratorConfig,
    students: list[Student],
    rng: random.Random,
) -> list[LearningStyle]:
    """Generate assessments for a share of the students."""
    styles = []
    for student in students:
        if rng.random() >= config.assessed_ratio:
            continue
        styles.append(LearningStyle(
            student_id=student.id,
            primary_style=rng.choice(list(PrimaryStyle)),
            social_style=rng.choice(list(SocialStyle)),
            processing_style=rng.choice(PROCESSING_STYLES),
            structure_style=rng.choice(STRUCTURE_STYLES),
        ))
    return styles


def _generate_preferences(
    config: GeneratorConfig,
    students: list[Student],
    rng: random.Random,
) -> list[Preference]:
    """Generate distinct avoid and prefer_near pairs."""
    if len(students) < 2:
        return []

    ids = [s.id for s in students]
    max_pairs = len(ids) * (len(ids) - 1) // 2
    wanted = min(config.num_avoid + config.num_prefer_near, max_pairs)

    pairs: list[tuple[str, str]] = []
    seen: set[frozenset[str]] = set()
    while len(pairs) < wanted:
        a, b = rng.sample(ids, 2)
        if frozenset((a, b)) in seen:
            continue
        seen.add(frozenset((a, b)))
        pairs.append((a, b))

    preferences = []
    for i, (a, b) in enumerate(pairs):
        if i < config.num_avoid:
            preference_type, reason = PreferenceType.AVOID, rng.choice(AVOID_REASONS)
        else:
            preference_type, reason = PreferenceType.PREFER_NEAR, rng.choice(PREFER_NEAR_REASONS)
        preferences.append(Preference(
            student_id=a,
            other_student_id=b,
            preference_type=preference_type,
            reason=reason,
        ))
    return preferences


# =============================================================================
# Utility Functions
# =============================================================================

def save_generated_cohort(cohort: SeatingInput, filepath: str | Path) -> None:
    """
    Save generated cohort data to a JSON file.

    Args:
        cohort: Generated SeatingInput
        filepath: Path to save JSON file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(_cohort_to_dict(cohort), f, indent=2)


def _cohort_to_dict(cohort: SeatingInput) -> dict:
    """Convert SeatingInput to the application's camelCase JSON."""
    return {
        "cohortId": cohort.cohort_id,
        "classroomId": cohort.classroom_id,
        "students": [
            {
                "id": s.id,
                "firstName": s.first_name,
                "lastName": s.last_name,
                "agency": s.agency,
                "status": s.status,
            }
            for s in cohort.students
        ],
        "learningStyles": [
            {
                "studentId": ls.student_id,
                "primaryStyle": ls.primary_style.value if ls.primary_style else None,
                "socialStyle": ls.social_style.value if ls.social_style else None,
                "processingStyle": ls.processing_style,
                "structureStyle": ls.structure_style,
            }
            for ls in cohort.learning_styles
        ],
        "preferences": [
            {
                "studentId": p.student_id,
                "otherStudentId": p.other_student_id,
                "preferenceType": p.preference_type.value,
                "reason": p.reason,
            }
            for p in cohort.preferences
        ],
        "layout": {
            "name": cohort.layout.name,
            "numRows": cohort.layout.num_rows,
            "tablesPerRow": cohort.layout.tables_per_row,
            "seatsPerTable": cohort.layout.seats_per_table,
            "overflowSeats": cohort.layout.overflow_seats,
        },
        "strategy": cohort.config.strategy.value,
        "timeLimitSeconds": cohort.config.time_limit_seconds,
    }


def get_generation_stats(cohort: SeatingInput) -> dict:
    """
    Get statistics about generated cohort data.

    Args:
        cohort: Generated SeatingInput

    Returns:
        Dictionary with statistics
    """
    agencies: dict[str, int] = {}
    for student in cohort.students:
        if student.agency:
            agencies[student.agency] = agencies.get(student.agency, 0) + 1

    capacity = cohort.layout.total_capacity
    utilization = len(cohort.students) / capacity * 100 if capacity > 0 else 0

    return {
        "students": len(cohort.students),
        "assessed": len(cohort.learning_styles),
        "agencies": len(agencies),
        "largest_agency": max(agencies.values()) if agencies else 0,
        "avoid_preferences": sum(1 for p in cohort.preferences if p.preference_type == PreferenceType.AVOID),
        "prefer_near_preferences": sum(
            1 for p in cohort.preferences if p.preference_type == PreferenceType.PREFER_NEAR
        ),
        "regular_capacity": cohort.layout.regular_capacity,
        "total_capacity": capacity,
        "utilization_percent": round(utilization, 1),
        "fits": len(cohort.students) <= capacity,
    }
