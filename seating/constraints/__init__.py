"""
Constraint modules for seating generation.

This package contains the constraint index shared by the greedy engine
and the manual override layer, and the CP-SAT constraint builders used by
the optimizing strategy.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Mapping


# =============================================================================
# Scoring Weights
# =============================================================================

@dataclass
class ConstraintWeights:
    """Configurable weights for seat scoring."""
    # Greedy seat score components
    zone_match: int = 10  # Seat zone matches learning style
    prefer_near: int = 8  # Per prefer-near partner at the table
    agency_clustering: int = 6  # Per same-agency student at the table
    side_match: int = 2  # Table side suits social style
    table_occupancy: int = 1  # Per student already at the table

    # CP-SAT objective terms
    placement: int = 100000  # Per student seated anywhere
    regular_seat: int = 10000  # Per student seated at a table
    avoid_pair: int = 1000  # Per avoid pair sharing a table

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, int] | None = None) -> ConstraintWeights:
        """
        Build weights from defaults plus named overrides.

        Raises:
            ValueError: If an override names an unknown weight or is negative
        """
        weights = cls()
        if not overrides:
            return weights

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(
                f"Unknown weight(s): {', '.join(unknown)}. "
                f"Valid weights: {', '.join(sorted(known))}"
            )

        for name, value in overrides.items():
            if value < 0:
                raise ValueError(f"Weight '{name}' must be non-negative (got {value})")
            setattr(weights, name, int(value))

        return weights


from .index import ConstraintIndex, Occupancy, table_occupancy  # noqa: E402
from .cp_sat import (  # noqa: E402
    PlacementVars,
    add_one_place_per_student,
    add_table_capacity,
    add_overflow_capacity,
    add_avoid_penalties,
    add_agency_penalties,
    add_prefer_near_rewards,
    add_placement_rewards,
    add_all_seating_constraints,
    SeatingConstraintStats,
)


__all__ = [
    "ConstraintWeights",
    # Constraint index
    "ConstraintIndex",
    "Occupancy",
    "table_occupancy",
    # CP-SAT constraints
    "PlacementVars",
    "add_one_place_per_student",
    "add_table_capacity",
    "add_overflow_capacity",
    "add_avoid_penalties",
    "add_agency_penalties",
    "add_prefer_near_rewards",
    "add_placement_rewards",
    "add_all_seating_constraints",
    "SeatingConstraintStats",
]
