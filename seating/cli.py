"""
Command-line interface for the seating-chart engine.

Usage:
    python -m seating generate input.json -o chart.json --strategy cp-sat
    python -m seating validate input.json
    python -m seating view chart.json --format csv
    python -m seating edit chart.json --input input.json --swap s3 --table 2 --seat 1
    python -m seating sample -n 24 --seed 42 -o input.json
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .constraints import ConstraintIndex, ConstraintWeights
from .data.generator import GeneratorConfig, generate_sample_cohort, get_generation_stats, save_generated_cohort
from .data.loader import DataValidationError, load_seating_data
from .data.models import PreferenceType, SeatingInput, Strategy
from .diagnostics import DiagnosticsReporter
from .main import generate_seating
from .output.formatters import ConsoleFormatter, format_csv, format_json
from .output.schema import SeatingChartOutput, build_chart_output, create_chart_output
from .overrides import (
    ClearAll,
    InvalidEditError,
    MoveToEmpty,
    SeatRef,
    SwapOrDisplace,
    Unassign,
    affected_tables,
    annotate_conflicts,
    apply_manual_edit,
)

# Create Typer app
app = typer.Typer(
    name="seating",
    help="Classroom seating-chart generator for paramedic cohorts.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()


# =============================================================================
# Helper Functions
# =============================================================================

def configure_logging(verbose: bool) -> None:
    """Route library logs through rich; debug level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_input(input_path: Path) -> SeatingInput:
    """Load and validate input data."""
    if not input_path.exists():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(code=1)

    try:
        return load_seating_data(input_path)
    except DataValidationError as e:
        console.print(f"[red]Error loading input:[/red] {e}")
        raise typer.Exit(code=1)


def load_output(output_path: Path) -> SeatingChartOutput:
    """Load a chart JSON file."""
    if not output_path.exists():
        console.print(f"[red]Error:[/red] Chart file not found: {output_path}")
        raise typer.Exit(code=1)

    try:
        with open(output_path) as f:
            data = json.load(f)
        return SeatingChartOutput.model_validate(data)
    except ValueError as e:
        console.print(f"[red]Error loading chart:[/red] {e}")
        raise typer.Exit(code=1)


def write_output(output: SeatingChartOutput, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(output.to_json())


# =============================================================================
# Commands
# =============================================================================

@app.command()
def generate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to input JSON file with the cohort and layout",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path to write the chart JSON file",
    ),
    strategy: Optional[Strategy] = typer.Option(
        None,
        "--strategy", "-s",
        help="Assignment strategy (defaults to the input's config)",
        case_sensitive=False,
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout", "-t",
        help="CP-SAT search budget in deterministic seconds",
        min=1,
        max=600,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Log placement decisions",
    ),
) -> None:
    """
    Generate a seating chart.

    Conflicts that cannot be avoided are reported as warnings; the chart is
    still produced.

    Example:
        python -m seating generate input.json -o chart.json
    """
    configure_logging(verbose)

    console.print(f"\n[bold]Loading input from:[/bold] {input_file}")
    seating_input = load_input(input_file)

    console.print(
        f"[green]Loaded:[/green] {len(seating_input.students)} students, "
        f"{len(seating_input.preferences)} preferences, "
        f"{seating_input.layout.total_capacity} seats"
    )

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Assigning seats...", total=None)
            result = generate_seating(seating_input, strategy=strategy, time_limit_seconds=timeout)
    except DataValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    chart = create_chart_output(result, seating_input)

    console.print()
    ConsoleFormatter(layout=seating_input.layout).print(chart, console)

    if verbose and result.solver_status is not None:
        console.print(f"\n[dim]Solver status: {result.solver_status.value}, objective: {result.objective_value}[/dim]")

    if output:
        write_output(chart, output)
        console.print(f"\n[green]Chart saved to:[/green] {output}")

    console.print()


@app.command()
def validate(
    input_file: Path = typer.Argument(
        ...,
        help="Path to input JSON file to validate",
    ),
) -> None:
    """
    Validate input data against the schema.

    Checks for:
    - Valid JSON structure
    - Schema compliance
    - Seating problems that will show up as warnings

    Example:
        python -m seating validate input.json
    """
    console.print(f"\n[bold]Validating:[/bold] {input_file}\n")

    if not input_file.exists():
        console.print(f"[red]Error:[/red] File not found: {input_file}")
        raise typer.Exit(code=1)

    # Step 1: JSON parsing
    console.print("[cyan]1. Checking JSON syntax...[/cyan]")
    try:
        with open(input_file) as f:
            json.load(f)
        console.print("   [green]JSON syntax is valid[/green]")
    except json.JSONDecodeError as e:
        console.print(f"   [red]Invalid JSON:[/red] {e}")
        raise typer.Exit(code=1)

    # Step 2: Schema validation
    console.print("[cyan]2. Validating against schema...[/cyan]")
    try:
        seating_input = load_seating_data(input_file)
        ConstraintWeights.from_overrides(seating_input.config.weights)
        console.print("   [green]Schema validation passed[/green]")
    except (DataValidationError, ValueError) as e:
        console.print("   [red]Schema validation failed:[/red]")
        for line in str(e).split("\n"):
            console.print(f"   {line}")
        raise typer.Exit(code=1)

    # Step 3: Seating feasibility
    console.print("[cyan]3. Checking seating feasibility...[/cyan]")
    warnings = _feasibility_warnings(seating_input)

    if warnings:
        console.print("   [yellow]Warnings found:[/yellow]")
        for w in warnings:
            console.print(f"   - {w}")
    else:
        console.print("   [green]No seating issues[/green]")

    # Summary
    console.print("\n[bold]Summary:[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")

    for key, value in seating_input.summary().items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(table)
    console.print("\n[green]Validation complete.[/green]\n")


def _feasibility_warnings(seating_input: SeatingInput) -> list[str]:
    layout = seating_input.layout
    warnings = []

    if layout.total_capacity == 0:
        warnings.append("Classroom has no seats")
    elif len(seating_input.students) > layout.total_capacity:
        warnings.append(
            f"{len(seating_input.students)} students exceed classroom capacity "
            f"of {layout.total_capacity} seats"
        )
    elif len(seating_input.students) > layout.regular_capacity:
        warnings.append(
            f"{len(seating_input.students) - layout.regular_capacity} student(s) "
            f"will sit in overflow seats"
        )

    agencies = Counter(s.agency for s in seating_input.students if s.agency)
    for agency, count in sorted(agencies.items()):
        if layout.num_tables and count > layout.num_tables:
            warnings.append(
                f"Agency '{agency}' has {count} students but there are only "
                f"{layout.num_tables} tables; some will share a table"
            )

    assessed = {ls.student_id for ls in seating_input.learning_styles if ls.primary_style}
    unassessed = [s for s in seating_input.students if s.id not in assessed]
    if unassessed:
        warnings.append(f"{len(unassessed)} student(s) have no learning-style assessment")

    avoid_count = sum(1 for p in seating_input.preferences if p.preference_type == PreferenceType.AVOID)
    if avoid_count and layout.num_tables == 1:
        warnings.append("Only one table: avoid preferences cannot be honoured")

    return warnings


@app.command()
def view(
    output_file: Path = typer.Argument(
        ...,
        help="Path to chart JSON file",
    ),
    format: str = typer.Option(
        "table",
        "--format", "-f",
        help="Output format: table, csv, or json",
    ),
    input_file: Optional[Path] = typer.Option(
        None,
        "--input", "-i",
        help="Input JSON file, to draw empty seats from its layout",
    ),
) -> None:
    """
    Display a seating chart.

    Examples:
        python -m seating view chart.json
        python -m seating view chart.json --format csv > chart.csv
    """
    output = load_output(output_file)

    if format == "json":
        typer.echo(format_json(output))
    elif format == "csv":
        typer.echo(format_csv(output), nl=False)
    elif format == "table":
        layout = load_input(input_file).layout if input_file else None
        ConsoleFormatter(layout=layout).print(output, console)
    else:
        console.print(f"[red]Error:[/red] Unknown format '{format}' (use table, csv or json)")
        raise typer.Exit(code=1)


@app.command()
def edit(
    output_file: Path = typer.Argument(
        ...,
        help="Path to chart JSON file to edit",
    ),
    input_file: Path = typer.Option(
        ...,
        "--input", "-i",
        help="Input JSON file the chart was generated from",
    ),
    move: Optional[str] = typer.Option(
        None,
        "--move",
        help="Move this student to an empty seat",
    ),
    swap: Optional[str] = typer.Option(
        None,
        "--swap",
        help="Drop this student on a seat, swapping with or displacing its occupant",
    ),
    unassign: Optional[str] = typer.Option(
        None,
        "--unassign",
        help="Return this student to the unassigned pool",
    ),
    clear: bool = typer.Option(
        False,
        "--clear",
        help="Unassign every student",
    ),
    table: Optional[int] = typer.Option(
        None,
        "--table",
        help="Target table number",
    ),
    seat: Optional[int] = typer.Option(
        None,
        "--seat",
        help="Target seat position",
    ),
    overflow: bool = typer.Option(
        False,
        "--overflow",
        help="Target is an overflow seat (--table is ignored)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Where to write the edited chart (defaults to editing in place)",
    ),
) -> None:
    """
    Apply a manual edit to a seating chart.

    Examples:
        python -m seating edit chart.json -i input.json --move s4 --table 3 --seat 2
        python -m seating edit chart.json -i input.json --swap s4 --table 1 --seat 1
        python -m seating edit chart.json -i input.json --unassign s4
    """
    chart = load_output(output_file)
    seating_input = load_input(input_file)

    chosen = [name for name, value in (("--move", move), ("--swap", swap), ("--unassign", unassign)) if value]
    if clear:
        chosen.append("--clear")
    if len(chosen) != 1:
        console.print("[red]Error:[/red] Give exactly one of --move, --swap, --unassign or --clear")
        raise typer.Exit(code=1)

    student_id = move or swap or unassign
    if student_id and seating_input.get_student(student_id) is None:
        console.print(f"[red]Error:[/red] Student '{student_id}' is not in the roster")
        raise typer.Exit(code=1)

    if clear:
        operation = ClearAll()
    elif unassign:
        operation = Unassign(student_id=unassign)
    else:
        target = _target_seat(table, seat, overflow)
        if move:
            operation = MoveToEmpty(student_id=move, target=target)
        else:
            operation = SwapOrDisplace(student_id=swap, target=target)

    before = chart.to_assignments()
    try:
        after = apply_manual_edit(before, operation, seating_input.layout)
    except InvalidEditError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    index = ConstraintIndex.from_input(seating_input)
    diagnostics = DiagnosticsReporter(seating_input, index).report(after)
    edited = build_chart_output(
        after,
        [s.id for s in seating_input.students if s.id not in {a.student_id for a in after}],
        diagnostics.warnings,
        diagnostics.stats,
        seating_input,
        strategy=chart.strategy,
        solve_time_ms=int(chart.solve_time_seconds * 1000),
    )

    ConsoleFormatter(layout=seating_input.layout).print(edited, console)

    conflicts = annotate_conflicts(index, after, affected_tables(before, after))
    for table_number, students in conflicts.items():
        for sid, partners in students.items():
            names = ", ".join(seating_input.student_name(p) for p in partners)
            console.print(
                f"[red]Table {table_number}:[/red] {seating_input.student_name(sid)} should avoid {names}"
            )

    destination = output or output_file
    write_output(edited, destination)
    console.print(f"\n[green]Chart saved to:[/green] {destination}")


def _target_seat(table: Optional[int], seat: Optional[int], overflow: bool) -> SeatRef:
    if seat is None or (table is None and not overflow):
        console.print("[red]Error:[/red] A target needs --seat and either --table or --overflow")
        raise typer.Exit(code=1)
    if overflow:
        return SeatRef.overflow(seat)
    return SeatRef(table_number=table, seat_position=seat)


@app.command()
def sample(
    output: Path = typer.Option(
        ...,
        "--output", "-o",
        help="Path to write the generated input JSON",
    ),
    num_students: int = typer.Option(
        24,
        "--num-students", "-n",
        help="Number of students in the cohort",
        min=0,
        max=200,
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed for reproducibility",
    ),
) -> None:
    """
    Generate a sample cohort input file.

    Example:
        python -m seating sample -n 24 --seed 42 -o input.json
    """
    cohort = generate_sample_cohort(GeneratorConfig(num_students=num_students, seed=seed))
    save_generated_cohort(cohort, output)

    stats = get_generation_stats(cohort)
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    for key, value in stats.items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))

    console.print(Panel(table, title="Sample Cohort"))
    console.print(f"[green]Input saved to:[/green] {output}")


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
