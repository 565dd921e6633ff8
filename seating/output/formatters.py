"""
Output formatters for seating charts.

This module provides formatters for different output formats:
- JSON: Complete chart with warnings and stats
- CSV: One row per seated student, for spreadsheets
- Console: Classroom grid for the CLI
"""

from __future__ import annotations

import csv
import json
import sys
from collections import defaultdict
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING, Optional, TextIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from seating.data.models import ClassroomLayout, OVERFLOW_TABLE_NUMBER
from seating.layout import SeatMap

if TYPE_CHECKING:
    from .schema import SeatingChartOutput, AssignmentOutput


# =============================================================================
# JSON Formatter
# =============================================================================

class JSONFormatter:
    """Formats chart output as JSON."""

    def __init__(self, indent: int = 2, ensure_ascii: bool = False):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            ensure_ascii: If True, escape non-ASCII characters
        """
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def format(self, output: SeatingChartOutput) -> str:
        return output.to_json(indent=self.indent)

    def format_compact(self, output: SeatingChartOutput) -> str:
        """Format as compact single-line JSON."""
        data = output.to_dict()
        return json.dumps(data, ensure_ascii=self.ensure_ascii, separators=(',', ':'))

    def format_assignments_only(self, output: SeatingChartOutput) -> str:
        """Format only the assignments array, as the application persists it."""
        data = [
            a.to_assignment().model_dump(mode="json")
            for a in output.assignments
        ]
        return json.dumps(data, indent=self.indent, ensure_ascii=self.ensure_ascii)


def format_json(output: SeatingChartOutput, indent: int = 2) -> str:
    """Convenience function for JSON formatting."""
    return JSONFormatter(indent=indent).format(output)


# =============================================================================
# CSV Formatter
# =============================================================================

class CSVFormatter:
    """Formats chart output as CSV."""

    DEFAULT_COLUMNS = [
        'row_number', 'table_number', 'seat_position', 'is_overflow',
        'student_id', 'student_name', 'agency', 'zone', 'is_manual_override',
    ]

    MINIMAL_COLUMNS = ['table_number', 'seat_position', 'student_name']

    def __init__(
        self,
        columns: list[str] | None = None,
        include_header: bool = True,
        delimiter: str = ',',
    ):
        self.columns = columns or self.DEFAULT_COLUMNS
        self.include_header = include_header
        self.delimiter = delimiter

    def format(self, output: SeatingChartOutput) -> str:
        buffer = StringIO()
        self.write(output, buffer)
        return buffer.getvalue()

    def write(self, output: SeatingChartOutput, file: TextIO) -> None:
        """
        Write CSV to file-like object, in seat order.

        Args:
            output: SeatingChartOutput to format
            file: File-like object to write to
        """
        writer = csv.writer(file, delimiter=self.delimiter)

        if self.include_header:
            writer.writerow(self.columns)

        ordered = sorted(
            output.assignments,
            key=lambda a: (a.is_overflow, a.row_number, a.table_number, a.seat_position),
        )
        for assignment in ordered:
            writer.writerow(self._assignment_to_row(assignment))

    def _assignment_to_row(self, a: AssignmentOutput) -> list[str]:
        field_map = {
            'row_number': str(a.row_number),
            'table_number': str(a.table_number),
            'seat_position': str(a.seat_position),
            'is_overflow': 'yes' if a.is_overflow else 'no',
            'student_id': a.student_id,
            'student_name': a.student_name or '',
            'agency': a.agency or '',
            'zone': a.zone or '',
            'is_manual_override': 'yes' if a.is_manual_override else 'no',
        }
        return [field_map.get(col, '') for col in self.columns]


def format_csv(output: SeatingChartOutput, columns: list[str] | None = None, minimal: bool = False) -> str:
    """Convenience function for CSV formatting."""
    if minimal:
        columns = CSVFormatter.MINIMAL_COLUMNS
    return CSVFormatter(columns=columns).format(output)


# =============================================================================
# Console Formatter
# =============================================================================

class ConsoleFormatter:
    """
    Formats a chart as a classroom grid.

    With a layout every table and seat is drawn, empty seats as "-".
    Without one, the grid is inferred from the occupied seats.
    """

    def __init__(self, layout: Optional[ClassroomLayout] = None, width: int | None = None):
        self.layout = layout
        self.width = width

    def format(self, output: SeatingChartOutput) -> str:
        """Render to plain text (via rich's recorder)."""
        console = Console(record=True, width=self.width or 100)
        self.print(output, console)
        return console.export_text()

    def print(self, output: SeatingChartOutput, console: Console | None = None) -> None:
        console = console or Console(file=sys.stdout, width=self.width)

        status_color = "green" if output.status.value == "complete" else "yellow"
        console.print(Panel(
            Text(output.status.value.upper(), style=f"bold {status_color}"),
            title="Seating Chart",
            subtitle=f"{output.strategy.value} in {output.solve_time_seconds:.2f}s",
        ))

        console.print(self._grid(output))

        stats = output.stats
        console.print(
            f"\n[bold]Placed:[/bold] {stats.placed}/{stats.total_students}  "
            f"[bold]Overflow:[/bold] {stats.in_overflow}  "
            f"[bold]Avoid conflicts:[/bold] {stats.avoidance_conflicts}  "
            f"[bold]Agency conflicts:[/bold] {stats.agency_conflicts}"
        )

        if output.warnings:
            console.print("\n[bold yellow]Warnings:[/bold yellow]")
            for warning in output.warnings:
                console.print(f"  [yellow]*[/yellow] {warning}")

    def _grid(self, output: SeatingChartOutput) -> Table:
        names = {
            (a.table_number, a.seat_position, a.is_overflow): a.student_name or a.student_id
            for a in output.assignments
        }
        rows = self._row_structure(output)

        max_tables = max((len(tables) for _, tables, _ in rows), default=1)
        grid = Table(show_header=True, header_style="bold cyan", show_lines=True)
        grid.add_column("Row", style="dim")
        for i in range(max_tables):
            grid.add_column(f"Table {i + 1}" if max_tables > 1 else "Tables", justify="center")

        for label, tables, is_overflow in rows:
            cells = [label]
            for table, seats in tables:
                seat_lines = [
                    f"{seat}. {names.get((table, seat, is_overflow), '-')}"
                    for seat in seats
                ]
                header = "Overflow" if is_overflow else f"T{table}"
                cells.append(header + "\n" + "\n".join(seat_lines))
            cells.extend([""] * (max_tables - len(tables)))
            grid.add_row(*cells)

        return grid

    def _row_structure(self, output: SeatingChartOutput) -> list[tuple[str, list[tuple[int, list[int]]], bool]]:
        """[(row label, [(table, [seats])], is_overflow)] in display order."""
        if self.layout is not None:
            seat_map = SeatMap(self.layout)
            by_row: dict[int, dict[int, list[int]]] = defaultdict(lambda: defaultdict(list))
            for slot in seat_map.regular_slots:
                by_row[slot.row_number][slot.table_number].append(slot.seat_position)
            overflow_seats = [s.seat_position for s in seat_map.overflow_slots]
        else:
            by_row = defaultdict(lambda: defaultdict(list))
            overflow_seats = []
            for a in output.assignments:
                if a.is_overflow:
                    overflow_seats.append(a.seat_position)
                else:
                    by_row[a.row_number][a.table_number].append(a.seat_position)

        structure = []
        for row in sorted(by_row):
            tables = [(t, sorted(seats)) for t, seats in sorted(by_row[row].items())]
            structure.append((f"Row {row}", tables, False))
        if overflow_seats:
            structure.append(("Overflow", [(OVERFLOW_TABLE_NUMBER, sorted(overflow_seats))], True))
        return structure


def format_console(output: SeatingChartOutput, layout: Optional[ClassroomLayout] = None) -> str:
    """Convenience function for console formatting."""
    return ConsoleFormatter(layout=layout).format(output)


def print_console(output: SeatingChartOutput, layout: Optional[ClassroomLayout] = None) -> None:
    """Print chart to console."""
    ConsoleFormatter(layout=layout).print(output)


# =============================================================================
# File Writing Utilities
# =============================================================================

def save_json(output: SeatingChartOutput, filepath: str | Path, indent: int = 2) -> None:
    """Save output as JSON file."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath.write_text(JSONFormatter(indent=indent).format(output), encoding='utf-8')


def save_csv(output: SeatingChartOutput, filepath: str | Path, minimal: bool = False) -> None:
    """Save output as CSV file."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    columns = CSVFormatter.MINIMAL_COLUMNS if minimal else None
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        CSVFormatter(columns=columns).write(output, f)
