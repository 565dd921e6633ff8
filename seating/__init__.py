"""Seating-chart engine - automatic and manual seat assignment for paramedic cohorts."""

from .main import SeatingResult, generate_seating, generate_from_file
from .engine import SeatAssignmentEngine
from .optimizer import SeatingModelBuilder, OptimizerSolution, SolverStatus
from .overrides import apply_manual_edit, apply_manual_edits, InvalidEditError
from .cli import app as cli_app

__all__ = [
    # Generation
    "SeatingResult",
    "generate_seating",
    "generate_from_file",
    "SeatAssignmentEngine",
    "SeatingModelBuilder",
    "OptimizerSolution",
    "SolverStatus",
    # Manual edits
    "apply_manual_edit",
    "apply_manual_edits",
    "InvalidEditError",
    # CLI
    "cli_app",
]
