"""Tests for output formatters."""

from __future__ import annotations

import csv
import json
from io import StringIO

import pytest

from seating.data.models import ClassroomLayout, Preference, SeatingInput, Student
from seating.main import generate_seating
from seating.output.formatters import (
    CSVFormatter,
    ConsoleFormatter,
    JSONFormatter,
    format_console,
    format_csv,
    format_json,
    print_console,
    save_csv,
    save_json,
)
from seating.output.schema import SeatingChartOutput, create_chart_output


@pytest.fixture
def layout() -> ClassroomLayout:
    return ClassroomLayout(num_rows=2, tables_per_row=2, seats_per_table=2, overflow_seats=1)


@pytest.fixture
def seating_input(layout) -> SeatingInput:
    return SeatingInput(
        cohort_id="cohort-1",
        students=[
            Student(id="s1", first_name="Ann", last_name="Lee", agency="Metro Fire"),
            Student(id="s2", first_name="Bo", last_name="Kim"),
            Student(id="s3", first_name="Cy", last_name="Diaz"),
        ],
        preferences=[Preference(student_id="s1", other_student_id="s2", preference_type="avoid")],
        layout=layout,
    )


@pytest.fixture
def sample_output(seating_input) -> SeatingChartOutput:
    return create_chart_output(generate_seating(seating_input), seating_input)


@pytest.fixture
def crowded_output() -> SeatingChartOutput:
    """A chart with an unplaced student and therefore warnings."""
    seating_input = SeatingInput(
        students=[Student(id=f"s{i}", first_name="Student", last_name=str(i)) for i in range(1, 4)],
        layout=ClassroomLayout(num_rows=1, tables_per_row=1, seats_per_table=2, overflow_seats=0),
    )
    return create_chart_output(generate_seating(seating_input), seating_input)


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_format(self, sample_output):
        data = json.loads(JSONFormatter().format(sample_output))
        assert data["status"] == "complete"
        assert len(data["assignments"]) == 3

    def test_compact(self, sample_output):
        text = JSONFormatter().format_compact(sample_output)
        assert "\n" not in text
        assert json.loads(text)["cohortId"] == "cohort-1"

    def test_assignments_only(self, sample_output):
        data = json.loads(JSONFormatter().format_assignments_only(sample_output))
        assert len(data) == 3
        assert set(data[0]) == {
            "student_id", "table_number", "seat_position", "row_number",
            "is_overflow", "is_manual_override",
        }


class TestCSVFormatter:
    """Tests for CSVFormatter."""

    def test_header_and_rows(self, sample_output):
        rows = list(csv.reader(StringIO(CSVFormatter().format(sample_output))))
        assert rows[0] == CSVFormatter.DEFAULT_COLUMNS
        assert len(rows) == 4

    def test_row_content(self, sample_output):
        reader = csv.DictReader(StringIO(CSVFormatter().format(sample_output)))
        by_student = {row["student_id"]: row for row in reader}
        assert by_student["s1"]["student_name"] == "Ann Lee"
        assert by_student["s1"]["agency"] == "Metro Fire"
        assert by_student["s2"]["agency"] == ""
        assert by_student["s1"]["is_overflow"] == "no"

    def test_seat_order(self, sample_output):
        reader = csv.DictReader(StringIO(CSVFormatter().format(sample_output)))
        keys = [(int(r["row_number"]), int(r["table_number"]), int(r["seat_position"])) for r in reader]
        assert keys == sorted(keys)

    def test_no_header(self, sample_output):
        rows = list(csv.reader(StringIO(CSVFormatter(include_header=False).format(sample_output))))
        assert len(rows) == 3

    def test_minimal(self, sample_output):
        rows = list(csv.reader(StringIO(format_csv(sample_output, minimal=True))))
        assert rows[0] == ["table_number", "seat_position", "student_name"]

    def test_custom_delimiter(self, sample_output):
        text = CSVFormatter(columns=["student_id", "zone"], delimiter=";").format(sample_output)
        assert text.splitlines()[0] == "student_id;zone"


class TestConsoleFormatter:
    """Tests for ConsoleFormatter."""

    def test_contains_names_and_status(self, sample_output):
        text = ConsoleFormatter().format(sample_output)
        assert "Seating Chart" in text
        assert "COMPLETE" in text
        assert "Ann Lee" in text
        assert "Row 1" in text

    def test_layout_shows_empty_seats(self, sample_output, layout):
        text = ConsoleFormatter(layout=layout).format(sample_output)
        assert "Row 2" in text
        assert "Overflow" in text
        assert "-" in text

    def test_warnings_listed(self, crowded_output):
        text = format_console(crowded_output)
        assert "PARTIAL" in text
        assert "Warnings" in text
        assert "Student 3" in text

    def test_empty_chart(self, seating_input):
        chart = create_chart_output(generate_seating(SeatingInput(layout=seating_input.layout)), seating_input)
        text = ConsoleFormatter().format(chart)
        assert "Placed:" in text

    def test_print_console(self, sample_output, layout, capsys):
        print_console(sample_output, layout)
        out = capsys.readouterr().out
        assert "Seating Chart" in out
        assert "Ann Lee" in out
        assert "Overflow" in out


class TestFileUtilities:
    """Tests for save_json and save_csv."""

    def test_save_json(self, sample_output, tmp_path):
        path = tmp_path / "nested" / "chart.json"
        save_json(sample_output, path)
        assert json.loads(path.read_text()) == json.loads(format_json(sample_output))

    def test_save_csv(self, sample_output, tmp_path):
        path = tmp_path / "chart.csv"
        save_csv(sample_output, path)
        rows = list(csv.reader(path.open()))
        assert len(rows) == 4

    def test_save_csv_minimal(self, sample_output, tmp_path):
        path = tmp_path / "chart.csv"
        save_csv(sample_output, path, minimal=True)
        assert path.read_text().splitlines()[0] == "table_number,seat_position,student_name"
