"""
Constraint index for seating generation and manual edits.

Builds lookup structures from the raw preference list and learning-style
table once per run. The index itself is read-only; callers pass the
current table occupancy in explicitly so the same index serves both the
assignment engine and live conflict highlighting.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Sequence

from seating.data.models import (
    Assignment,
    LearningStyle,
    Preference,
    PreferenceType,
    SocialStyle,
    Side,
    Student,
    Zone,
)
from seating.layout import ZONE_FOR_STYLE

if TYPE_CHECKING:
    from seating.data.models import SeatingInput
    from . import ConstraintWeights

logger = logging.getLogger(__name__)

Occupancy = Mapping[int, Sequence[str]]

# Side each social style prefers
SIDE_FOR_SOCIAL_STYLE: dict[SocialStyle, Side] = {
    SocialStyle.INDEPENDENT: Side.LEFT,
    SocialStyle.SOCIAL: Side.RIGHT,
}


def table_occupancy(assignments: Iterable[Assignment]) -> dict[int, list[str]]:
    """
    Group seated students by table.

    Overflow seats are not tables and are left out, so overflow students
    never count as anyone's tablemate.
    """
    occupancy: dict[int, list[str]] = defaultdict(list)
    for a in sorted(assignments, key=lambda a: a.slot):
        if a.is_overflow:
            continue
        occupancy[a.table_number].append(a.student_id)
    return dict(occupancy)


class ConstraintIndex:
    """
    Fast lookups over avoid/prefer-near edges, learning styles and agencies.

    Preference records are directional in storage; the index treats every
    edge as an unordered pair. A pair recorded as both avoid and
    prefer_near is treated as avoid.
    """

    def __init__(
        self,
        students: Sequence[Student],
        learning_styles: Sequence[LearningStyle] = (),
        preferences: Sequence[Preference] = (),
        weights: ConstraintWeights | None = None,
    ):
        from . import ConstraintWeights

        self.weights = weights or ConstraintWeights()

        self._students: dict[str, Student] = {s.id: s for s in students}
        self._roster_order: dict[str, int] = {s.id: i for i, s in enumerate(students)}
        self._styles: dict[str, LearningStyle] = {
            ls.student_id: ls for ls in learning_styles
        }

        self._avoid: dict[str, set[str]] = defaultdict(set)
        self._prefer_near: dict[str, set[str]] = defaultdict(set)

        for pref in preferences:
            a, b = pref.student_id, pref.other_student_id
            if pref.preference_type == PreferenceType.AVOID:
                self._avoid[a].add(b)
                self._avoid[b].add(a)
            else:
                self._prefer_near[a].add(b)
                self._prefer_near[b].add(a)

        # avoid wins over prefer_near for the same pair
        for student_id, partners in self._avoid.items():
            overlap = self._prefer_near.get(student_id, set()) & partners
            if overlap:
                logger.debug(
                    "Student %s has both avoid and prefer_near with %s; keeping avoid",
                    student_id, sorted(overlap),
                )
                self._prefer_near[student_id] -= overlap

    @classmethod
    def from_input(cls, seating_input: SeatingInput, weights: ConstraintWeights | None = None) -> ConstraintIndex:
        return cls(
            seating_input.students,
            seating_input.learning_styles,
            seating_input.preferences,
            weights=weights,
        )

    # -------------------------------------------------------------------------
    # Edge Lookups
    # -------------------------------------------------------------------------

    def avoid_partners(self, student_id: str) -> set[str]:
        return set(self._avoid.get(student_id, ()))

    def prefer_near_partners(self, student_id: str) -> set[str]:
        return set(self._prefer_near.get(student_id, ()))

    def avoid_degree(self, student_id: str) -> int:
        return len(self._avoid.get(student_id, ()))

    def prefer_near_degree(self, student_id: str) -> int:
        return len(self._prefer_near.get(student_id, ()))

    def should_avoid(self, student_id: str, other_id: str) -> bool:
        return other_id in self._avoid.get(student_id, ())

    def avoid_pairs(self) -> list[tuple[str, str]]:
        """Every avoid edge once, as a pair ordered by roster position."""
        pairs = set()
        for a, partners in self._avoid.items():
            for b in partners:
                pairs.add(tuple(sorted((a, b), key=self._roster_key)))
        return sorted(pairs, key=lambda p: (self._roster_key(p[0]), self._roster_key(p[1])))

    def prefer_near_pairs(self) -> list[tuple[str, str]]:
        pairs = set()
        for a, partners in self._prefer_near.items():
            for b in partners:
                pairs.add(tuple(sorted((a, b), key=self._roster_key)))
        return sorted(pairs, key=lambda p: (self._roster_key(p[0]), self._roster_key(p[1])))

    # -------------------------------------------------------------------------
    # Student Attributes
    # -------------------------------------------------------------------------

    def get_student(self, student_id: str) -> Optional[Student]:
        return self._students.get(student_id)

    def agency_of(self, student_id: str) -> Optional[str]:
        student = self._students.get(student_id)
        return student.agency if student else None

    def has_learning_style(self, student_id: str) -> bool:
        style = self._styles.get(student_id)
        return style is not None and style.primary_style is not None

    def preferred_zone(self, student_id: str) -> Optional[Zone]:
        style = self._styles.get(student_id)
        if style is None or style.primary_style is None:
            return None
        return ZONE_FOR_STYLE[style.primary_style]

    def preferred_side(self, student_id: str) -> Optional[Side]:
        style = self._styles.get(student_id)
        if style is None or style.social_style is None:
            return None
        return SIDE_FOR_SOCIAL_STYLE[style.social_style]

    def placement_priority(self, student_id: str) -> tuple[int, int, int, int]:
        """
        Sort key for placement order; smaller keys are placed first.

        Most avoid edges first, then assessed students, then most
        prefer-near edges, then roster order.
        """
        return (
            -self.avoid_degree(student_id),
            0 if self.has_learning_style(student_id) else 1,
            -self.prefer_near_degree(student_id),
            self._roster_key(student_id),
        )

    # -------------------------------------------------------------------------
    # Seat Queries
    # -------------------------------------------------------------------------

    def conflicts_at(self, student_id: str, table_number: int, occupancy: Occupancy) -> list[str]:
        """Avoid partners of ``student_id`` currently seated at ``table_number``."""
        partners = self._avoid.get(student_id)
        if not partners:
            return []
        return sorted(
            other for other in occupancy.get(table_number, ())
            if other != student_id and other in partners
        )

    def prefer_near_count(self, student_id: str, table_number: int, occupancy: Occupancy) -> int:
        partners = self._prefer_near.get(student_id)
        if not partners:
            return 0
        return sum(
            1 for other in occupancy.get(table_number, ())
            if other != student_id and other in partners
        )

    def agency_count(
        self,
        table_number: int,
        agency: Optional[str],
        occupancy: Occupancy,
        exclude: Optional[str] = None,
    ) -> int:
        """Number of students from ``agency`` already seated at the table."""
        if not agency:
            return 0
        return sum(
            1 for other in occupancy.get(table_number, ())
            if other != exclude and self.agency_of(other) == agency
        )

    def affinity_score(self, student_id: str, zone: Optional[Zone]) -> int:
        """Zone weight when ``zone`` matches the student's learning style, else neutral."""
        preferred = self.preferred_zone(student_id)
        if preferred is None or zone is None:
            return 0
        return self.weights.zone_match if zone == preferred else 0

    def side_score(self, student_id: str, side: Optional[Side]) -> int:
        """Side weight when the table side suits the student's social style."""
        preferred = self.preferred_side(student_id)
        if preferred is None or side is None:
            return 0
        return self.weights.side_match if side == preferred else 0

    def _roster_key(self, student_id: str) -> int:
        return self._roster_order.get(student_id, len(self._roster_order))
