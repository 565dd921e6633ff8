"""Tests for data models."""

from __future__ import annotations

import pytest

from seating.data.models import (
    Assignment,
    ClassroomLayout,
    LearningStyle,
    Preference,
    PreferenceType,
    PrimaryStyle,
    SeatingConfig,
    SeatingInput,
    SocialStyle,
    Strategy,
    Student,
)


class TestStudent:
    """Tests for Student model."""

    def test_minimal_student(self):
        student = Student(id="s1", first_name="Ann")
        assert student.last_name == ""
        assert student.agency is None
        assert student.status == "active"
        assert student.name == "Ann"

    def test_full_name(self):
        student = Student(id="s1", first_name="Ann", last_name="Lee", agency="Metro Fire")
        assert student.name == "Ann Lee"
        assert str(student) == "Ann Lee (s1)"

    def test_blank_agency_is_none(self):
        assert Student(id="s1", first_name="Ann", agency="   ").agency is None
        assert Student(id="s1", first_name="Ann", agency="").agency is None

    def test_agency_is_trimmed(self):
        assert Student(id="s1", first_name="Ann", agency=" County EMS ").agency == "County EMS"

    def test_missing_first_name(self):
        with pytest.raises(ValueError):
            Student(id="s1")

    def test_extra_fields_rejected(self):
        with pytest.raises(ValueError):
            Student(id="s1", first_name="Ann", nickname="A")


class TestLearningStyle:
    """Tests for LearningStyle model."""

    def test_unassessed_fields_default_to_none(self):
        style = LearningStyle(student_id="s1")
        assert style.primary_style is None
        assert style.social_style is None

    def test_full_assessment(self):
        style = LearningStyle(
            student_id="s1",
            primary_style="kinesthetic",
            social_style="independent",
            processing_style="sequential",
            structure_style="structured",
        )
        assert style.primary_style == PrimaryStyle.KINESTHETIC
        assert style.social_style == SocialStyle.INDEPENDENT

    def test_invalid_primary_style(self):
        with pytest.raises(ValueError):
            LearningStyle(student_id="s1", primary_style="olfactory")


class TestPreference:
    """Tests for Preference model."""

    def test_avoid_preference(self):
        pref = Preference(student_id="s1", other_student_id="s2", preference_type="avoid")
        assert pref.preference_type == PreferenceType.AVOID
        assert pref.pair == frozenset({"s1", "s2"})

    def test_pair_is_unordered(self):
        a = Preference(student_id="s1", other_student_id="s2", preference_type="prefer_near")
        b = Preference(student_id="s2", other_student_id="s1", preference_type="prefer_near")
        assert a.pair == b.pair

    def test_self_preference_rejected(self):
        with pytest.raises(ValueError, match="must differ"):
            Preference(student_id="s1", other_student_id="s1", preference_type="avoid")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            Preference(student_id="s1", other_student_id="s2", preference_type="ignore")


class TestClassroomLayout:
    """Tests for ClassroomLayout model."""

    def test_default_layout(self):
        layout = ClassroomLayout()
        assert layout.num_rows == 4
        assert layout.tables_per_row == 2
        assert layout.num_tables == 8
        assert layout.regular_capacity == 24
        assert layout.total_capacity == 27
        assert layout.overflow_row_number == 5

    def test_custom_layout(self):
        layout = ClassroomLayout(num_rows=3, tables_per_row=1, seats_per_table=3, overflow_seats=0)
        assert layout.num_tables == 3
        assert layout.total_capacity == 9

    def test_zero_seats_per_table_rejected(self):
        with pytest.raises(ValueError):
            ClassroomLayout(seats_per_table=0)

    def test_empty_room_allowed(self):
        layout = ClassroomLayout(num_rows=0, tables_per_row=0, overflow_seats=0)
        assert layout.total_capacity == 0


class TestAssignment:
    """Tests for Assignment model."""

    def test_slot(self):
        a = Assignment(student_id="s1", table_number=3, seat_position=2, row_number=2)
        assert a.slot == (3, 2, False)
        assert a.is_manual_override is False

    def test_overflow_slot(self):
        a = Assignment(student_id="s1", table_number=0, seat_position=1, row_number=5, is_overflow=True)
        assert a.slot == (0, 1, True)

    def test_frozen(self):
        a = Assignment(student_id="s1", table_number=1, seat_position=1, row_number=1)
        with pytest.raises(ValueError):
            a.table_number = 2

    def test_hashable_and_equal(self):
        a = Assignment(student_id="s1", table_number=1, seat_position=1, row_number=1)
        b = Assignment(student_id="s1", table_number=1, seat_position=1, row_number=1)
        assert a == b
        assert len({a, b}) == 1

    def test_seat_position_starts_at_one(self):
        with pytest.raises(ValueError):
            Assignment(student_id="s1", table_number=1, seat_position=0, row_number=1)


class TestSeatingConfig:
    """Tests for SeatingConfig model."""

    def test_defaults(self):
        config = SeatingConfig()
        assert config.strategy == Strategy.GREEDY
        assert config.time_limit_seconds == 10
        assert config.require_students is False
        assert config.weights == {}

    def test_cp_sat_strategy(self):
        assert SeatingConfig(strategy="cp-sat").strategy == Strategy.CP_SAT

    def test_time_limit_bounds(self):
        with pytest.raises(ValueError):
            SeatingConfig(time_limit_seconds=0)


class TestSeatingInput:
    """Tests for SeatingInput model."""

    @pytest.fixture
    def students(self) -> list[Student]:
        return [
            Student(id="s1", first_name="Ann", last_name="Lee", agency="Metro Fire"),
            Student(id="s2", first_name="Bo", last_name="Kim"),
            Student(id="s3", first_name="Cy", last_name="Diaz", agency="Metro Fire"),
        ]

    def test_empty_input(self):
        seating_input = SeatingInput()
        assert seating_input.students == []
        assert seating_input.layout.total_capacity == 27

    def test_lookups(self, students):
        seating_input = SeatingInput(
            students=students,
            learning_styles=[LearningStyle(student_id="s2", primary_style="audio")],
        )
        assert seating_input.get_student("s1").first_name == "Ann"
        assert seating_input.get_student("missing") is None
        assert seating_input.get_learning_style("s2").primary_style == PrimaryStyle.AUDIO
        assert seating_input.get_learning_style("s1") is None
        assert seating_input.student_name("s3") == "Cy Diaz"
        assert seating_input.student_name("ghost") == "ghost"

    def test_duplicate_student_ids(self, students):
        with pytest.raises(ValueError, match="Duplicate student ID"):
            SeatingInput(students=students + [Student(id="s1", first_name="Dup")])

    def test_duplicate_learning_styles(self, students):
        with pytest.raises(ValueError, match="more than one learning style"):
            SeatingInput(
                students=students,
                learning_styles=[
                    LearningStyle(student_id="s1", primary_style="audio"),
                    LearningStyle(student_id="s1", primary_style="visual"),
                ],
            )

    def test_foreign_records_dropped(self, students):
        seating_input = SeatingInput(
            students=students,
            learning_styles=[
                LearningStyle(student_id="s1", primary_style="audio"),
                LearningStyle(student_id="outsider", primary_style="visual"),
            ],
            preferences=[
                Preference(student_id="s1", other_student_id="s2", preference_type="avoid"),
                Preference(student_id="s1", other_student_id="outsider", preference_type="avoid"),
            ],
        )
        assert [ls.student_id for ls in seating_input.learning_styles] == ["s1"]
        assert len(seating_input.preferences) == 1

    def test_summary(self, students):
        seating_input = SeatingInput(
            cohort_id="c1",
            students=students,
            preferences=[
                Preference(student_id="s1", other_student_id="s2", preference_type="avoid"),
                Preference(student_id="s2", other_student_id="s3", preference_type="prefer_near"),
            ],
        )
        summary = seating_input.summary()
        assert summary["cohort_id"] == "c1"
        assert summary["students"] == 3
        assert summary["preferences"] == 2
        assert summary["avoid_preferences"] == 1
        assert summary["tables"] == 8
        assert summary["total_capacity"] == 27
