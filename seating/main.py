"""Entry point for seating-chart generation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .constraints import ConstraintIndex, ConstraintWeights
from .data.loader import DataValidationError, load_seating_data
from .data.models import Assignment, SeatingInput, Strategy
from .diagnostics import DiagnosticStats, DiagnosticsReporter
from .engine import SeatAssignmentEngine
from .layout import SeatMap
from .optimizer import SeatingModelBuilder, SolverStatus

logger = logging.getLogger(__name__)


@dataclass
class SeatingResult:
    """Full replacement chart for one generation run."""
    strategy: Strategy
    assignments: list[Assignment]
    unplaced: list[str]
    warnings: list[str]
    stats: DiagnosticStats
    solve_time_ms: int = 0
    solver_status: Optional[SolverStatus] = None
    objective_value: Optional[int] = None
    notes: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """Every student in the roster has a seat."""
        return not self.unplaced


def generate_seating(
    seating_input: SeatingInput,
    strategy: Union[Strategy, str, None] = None,
    weights: ConstraintWeights | None = None,
    time_limit_seconds: Optional[int] = None,
) -> SeatingResult:
    """
    Generate a seating chart for a cohort.

    Unsatisfiable constraints (forced avoid pairs, agency clustering, a
    cohort larger than the room) come back as warnings. Structural
    problems with the input raise instead, and no partial chart is
    produced.

    Args:
        seating_input: Roster, learning styles, preferences and layout
        strategy: "greedy" or "cp-sat" (defaults to the input's config)
        weights: Scoring weights (defaults plus the input's overrides if None)
        time_limit_seconds: CP-SAT time limit (defaults to the input's config)

    Returns:
        SeatingResult with assignments, warnings and stats

    Raises:
        DataValidationError: If the classroom has no seats, the weight
            overrides are invalid, or the roster is empty when required
    """
    config = seating_input.config
    strategy = Strategy(strategy) if strategy is not None else config.strategy
    time_limit = time_limit_seconds or config.time_limit_seconds

    if weights is None:
        try:
            weights = ConstraintWeights.from_overrides(config.weights)
        except ValueError as e:
            raise DataValidationError(str(e)) from e

    _validate_structure(seating_input)

    seat_map = SeatMap(seating_input.layout)
    index = ConstraintIndex.from_input(seating_input, weights)
    reporter = DiagnosticsReporter(seating_input, index, seat_map)

    logger.info(
        "Generating %s chart for %d students in %d seats",
        strategy.value, len(seating_input.students), seat_map.capacity,
    )

    started = time.perf_counter()
    notes: list[str] = []
    solver_status = None
    objective_value = None

    if strategy == Strategy.CP_SAT and seating_input.students:
        builder = SeatingModelBuilder(seating_input, weights, index=index, seat_map=seat_map)
        solution = builder.solve(time_limit_seconds=time_limit)
        solver_status = solution.status

        if solution.is_feasible:
            assignments = solution.assignments
            unplaced = solution.unplaced
            objective_value = solution.objective_value
        else:
            logger.warning("CP-SAT returned %s; falling back to greedy", solution.status.value)
            notes.append(
                f"Optimizer returned {solution.status.value}; chart generated with the greedy strategy"
            )
            assignments, unplaced = _run_greedy(seating_input, weights, index, seat_map)
    else:
        assignments, unplaced = _run_greedy(seating_input, weights, index, seat_map)

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    diagnostics = reporter.report(assignments, unplaced)

    return SeatingResult(
        strategy=strategy,
        assignments=assignments,
        unplaced=unplaced,
        warnings=notes + diagnostics.warnings,
        stats=diagnostics.stats,
        solve_time_ms=elapsed_ms,
        solver_status=solver_status,
        objective_value=objective_value,
        notes=notes,
    )


def generate_from_file(
    data_path: Union[str, Path],
    output_path: Union[str, Path, None] = None,
    strategy: Union[Strategy, str, None] = None,
    time_limit_seconds: Optional[int] = None,
) -> dict:
    """
    Generate a chart from a JSON input file.

    Args:
        data_path: Path to the seating input JSON file
        output_path: Optional path to write the chart JSON
        strategy: Assignment strategy override
        time_limit_seconds: CP-SAT time limit override

    Returns:
        Chart output dictionary (camelCase keys)
    """
    from .output.schema import create_chart_output

    seating_input = load_seating_data(data_path)
    result = generate_seating(seating_input, strategy=strategy, time_limit_seconds=time_limit_seconds)
    output = create_chart_output(result, seating_input)

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output.to_json())
        logger.info("Chart written to %s", path)

    return output.to_dict()


def _validate_structure(seating_input: SeatingInput) -> None:
    errors = []
    layout = seating_input.layout

    if layout.total_capacity == 0:
        errors.append("Classroom has no seats (no tables and no overflow seats)")
    if seating_input.config.require_students and not seating_input.students:
        errors.append("Roster is empty")

    if errors:
        raise DataValidationError("; ".join(errors))


def _run_greedy(
    seating_input: SeatingInput,
    weights: ConstraintWeights,
    index: ConstraintIndex,
    seat_map: SeatMap,
) -> tuple[list[Assignment], list[str]]:
    run = SeatAssignmentEngine(seating_input, weights, index=index, seat_map=seat_map).run()
    return run.assignments, run.unplaced
