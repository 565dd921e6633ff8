"""
Greedy seat assignment engine.

Places the hardest-to-seat students first and gives each the best open
seat under the constraint index's scoring:

    score = zone match + side match
          + prefer_near * prefer-near partners at the table
          - agency_clustering * same-agency students at the table
          - table_occupancy * students at the table

Seats at a table holding an avoid partner are excluded. A student whose
every open regular seat sits with an avoid partner is still seated at the
least-conflicted one, and the conflict is reported by the diagnostics.
The overflow bank is only used once every regular seat is taken.

Ties go to the first seat in layout order (lowest row, then lowest table
number, then lowest seat position), so reruns on unchanged input
reproduce the same chart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .constraints import ConstraintIndex, ConstraintWeights
from .data.models import Assignment, SeatingInput
from .layout import SeatMap, SeatSlot

logger = logging.getLogger(__name__)


@dataclass
class SeatScore:
    """Score of one candidate seat for one student."""
    slot: SeatSlot
    score: int
    conflicts: list[str] = field(default_factory=list)


@dataclass
class EngineRun:
    """Result of a greedy placement run."""
    assignments: list[Assignment]
    unplaced: list[str]
    placement_order: list[str]
    forced_conflicts: int = 0

    @property
    def placed(self) -> int:
        return len(self.assignments)


class SeatAssignmentEngine:
    """
    Greedy highest-constraint-first seat assignment.

    Usage:
        engine = SeatAssignmentEngine(seating_input)
        run = engine.run()
    """

    def __init__(
        self,
        seating_input: SeatingInput,
        weights: ConstraintWeights | None = None,
        index: ConstraintIndex | None = None,
        seat_map: SeatMap | None = None,
    ):
        self.input = seating_input
        self.weights = weights or ConstraintWeights()
        self.index = index or ConstraintIndex.from_input(seating_input, self.weights)
        self.seat_map = seat_map or SeatMap(seating_input.layout)

        # Working state, reset by run()
        self._taken: set[tuple[int, int, bool]] = set()
        self._occupancy: dict[int, list[str]] = {}

    def placement_order(self) -> list[str]:
        """Student IDs in the order they get to pick seats."""
        ids = [s.id for s in self.input.students]
        return sorted(ids, key=self.index.placement_priority)

    def run(self) -> EngineRun:
        """Place every student the room can hold."""
        self._taken = set()
        self._occupancy = {table: [] for table in self.seat_map.tables}

        order = self.placement_order()
        assignments: list[Assignment] = []
        unplaced: list[str] = []
        forced = 0

        for student_id in order:
            choice = self._choose_regular_seat(student_id)

            if choice is not None and choice.conflicts:
                forced += 1
                logger.warning(
                    "No conflict-free seat for %s; seating at %s with %s",
                    student_id, choice.slot, ", ".join(choice.conflicts),
                )

            slot = choice.slot if choice is not None else self._first_open_overflow()

            if slot is None:
                logger.info("No open seat left for %s", student_id)
                unplaced.append(student_id)
                continue

            self._take(student_id, slot)
            assignments.append(slot.to_assignment(student_id))
            logger.debug(
                "Placed %s at %s (score %s)",
                student_id, slot, choice.score if choice is not None else "overflow",
            )

        assignments.sort(key=lambda a: (a.is_overflow, a.table_number, a.seat_position))

        return EngineRun(
            assignments=assignments,
            unplaced=unplaced,
            placement_order=order,
            forced_conflicts=forced,
        )

    # -------------------------------------------------------------------------
    # Seat Scoring
    # -------------------------------------------------------------------------

    def score_seat(self, student_id: str, slot: SeatSlot) -> SeatScore:
        """Score a regular seat for a student against the current occupancy."""
        index = self.index
        w = self.weights
        table = slot.table_number
        occupants = self._occupancy.get(table, [])

        score = index.affinity_score(student_id, slot.zone)
        score += index.side_score(student_id, slot.side)
        score += w.prefer_near * index.prefer_near_count(student_id, table, self._occupancy)
        score -= w.agency_clustering * index.agency_count(
            table, index.agency_of(student_id), self._occupancy, exclude=student_id
        )
        score -= w.table_occupancy * len(occupants)

        return SeatScore(
            slot=slot,
            score=score,
            conflicts=index.conflicts_at(student_id, table, self._occupancy),
        )

    def _choose_regular_seat(self, student_id: str) -> Optional[SeatScore]:
        best: Optional[SeatScore] = None
        best_forced: Optional[SeatScore] = None

        for slot in self.seat_map.regular_slots:
            if slot.slot in self._taken:
                continue

            candidate = self.score_seat(student_id, slot)

            if not candidate.conflicts:
                if best is None or candidate.score > best.score:
                    best = candidate
            elif best is None:
                key = (-len(candidate.conflicts), candidate.score)
                if best_forced is None or key > (-len(best_forced.conflicts), best_forced.score):
                    best_forced = candidate

        return best if best is not None else best_forced

    def _first_open_overflow(self) -> Optional[SeatSlot]:
        for slot in self.seat_map.overflow_slots:
            if slot.slot not in self._taken:
                return slot
        return None

    def _take(self, student_id: str, slot: SeatSlot) -> None:
        self._taken.add(slot.slot)
        if not slot.is_overflow:
            self._occupancy[slot.table_number].append(student_id)
