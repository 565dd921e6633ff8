"""Chart output formatting."""

from .schema import (
    OutputStatus,
    AssignmentOutput,
    UnplacedStudentOutput,
    StatsOutput,
    SeatingChartOutput,
    create_chart_output,
    build_chart_output,
    load_chart_output,
)
from .formatters import (
    # Formatter classes
    JSONFormatter,
    CSVFormatter,
    ConsoleFormatter,
    # Convenience functions
    format_json,
    format_csv,
    format_console,
    print_console,
    # File utilities
    save_json,
    save_csv,
)

__all__ = [
    # Schema models
    "OutputStatus",
    "AssignmentOutput",
    "UnplacedStudentOutput",
    "StatsOutput",
    "SeatingChartOutput",
    # Schema conversion functions
    "create_chart_output",
    "build_chart_output",
    "load_chart_output",
    # Formatter classes
    "JSONFormatter",
    "CSVFormatter",
    "ConsoleFormatter",
    # Formatter convenience functions
    "format_json",
    "format_csv",
    "format_console",
    "print_console",
    # File utilities
    "save_json",
    "save_csv",
]
