"""
Test: number parsing, category set builders, courses.
"""
import math

import pytest

from gradeforge.models import (
    Category,
    SETUP_STEP,
    add_category,
    apply_edits,
    can_add_category,
    default_categories,
    final_category,
    new_course,
    non_final_categories,
    to_number,
    weight_total,
    weights_balanced,
)


class TestToNumber:
    @pytest.mark.parametrize("value, expected", [
        (20, 20.0),
        (12.5, 12.5),
        ("85", 85.0),
        (" 7.25 ", 7.25),
        ("-5", -5.0),
        ("1e2", 100.0),
    ])
    def test_parses(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "12%", True, [1]])
    def test_unparsable_is_nan(self, value):
        assert math.isnan(to_number(value))

    def test_infinity_kept(self):
        assert to_number("inf") == float("inf")


class TestDefaultRows:
    def test_two_blank_rows_and_final(self):
        rows = default_categories()
        assert len(rows) == 3
        assert rows[-1].is_final
        assert rows[-1].name == "FINAL"
        assert all(r.name == "" and r.weight is None for r in rows[:2])

    def test_final_and_non_final(self, categories):
        assert final_category(categories).weight == 20
        assert [c.name for c in non_final_categories(categories)] == ["Homework", "Quizzes", "Exams"]
        assert final_category(non_final_categories(categories)) is None


class TestAddCategory:
    def test_inserted_before_final(self, categories):
        rows = add_category(categories, Category("Labs", 0))
        assert [c.name for c in rows] == ["Homework", "Quizzes", "Exams", "Labs", "FINAL"]
        assert len(categories) == 4

    def test_appended_without_final(self):
        rows = add_category([Category("Homework")])
        assert len(rows) == 2
        assert rows[-1] == Category()

    def test_max_rows(self):
        rows = default_categories()
        while can_add_category(rows):
            rows = add_category(rows)
        assert len(rows) == 15
        assert rows[-1].is_final
        with pytest.raises(ValueError, match="Max 15 rows"):
            add_category(rows)


class TestApplyEdits:
    def test_scores_follow_their_row_after_delete(self, categories):
        edits = [(c.key, c.name, c.weight) for c in categories[1:3]]
        rows = apply_edits(categories, edits)
        assert [(c.name, c.score) for c in rows] == [("Quizzes", 85), ("Exams", 80), ("FINAL", None)]

    def test_scores_follow_their_row_after_reorder(self, categories):
        edits = [(c.key, c.name, c.weight) for c in reversed(categories[:3])]
        rows = apply_edits(categories, edits)
        assert [(c.name, c.score) for c in rows[:3]] == [("Exams", 80), ("Quizzes", 85), ("Homework", 90)]

    def test_renamed_row_keeps_score_and_key(self, categories):
        hw = categories[0]
        rows = apply_edits(categories, [(hw.key, "Problem sets", 80)])
        assert rows[0].name == "Problem sets"
        assert rows[0].score == 90
        assert rows[0].key == hw.key

    def test_new_row_gets_key_and_no_score(self, categories):
        rows = apply_edits(categories, [("", "Labs", 10)])
        assert rows[0].key
        assert rows[0].score is None

    def test_final_kept_last(self, categories):
        rows = apply_edits(categories, [("", "Labs", 10)])
        assert rows[-1] is categories[-1]

    def test_missing_final_restored(self):
        rows = apply_edits([Category("Homework", 80)], [("", "Homework", 80)])
        assert rows[-1].is_final

    def test_rows_past_limit_dropped(self, categories):
        edits = [("", f"Cat {i}", 5) for i in range(20)]
        rows = apply_edits(categories, edits)
        assert len(rows) == 15
        assert rows[-1].is_final
        assert rows[-2].name == "Cat 13"

    def test_key_not_part_of_equality(self):
        assert Category("Homework", 20) == Category("Homework", 20)
        assert Category("Homework", 20).key != Category("Homework", 20).key


class TestWeightTotal:
    def test_total(self, categories):
        assert weight_total(categories) == 100
        assert weights_balanced(weight_total(categories))

    def test_unparsable_counts_as_zero(self):
        rows = [Category("A", "40"), Category("B", "abc"), Category("FINAL", None, is_final=True)]
        assert weight_total(rows) == 40
        assert not weights_balanced(40)


class TestNewCourse:
    def test_new_course(self):
        course = new_course("  Calculus I ")
        assert course.name == "Calculus I"
        assert course.step == SETUP_STEP
        assert course.step_label == "Setup"
        assert len(course.categories) == 3
        assert course.created_at > 0
        assert course.id != new_course("Calculus I").id

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name(self, name):
        with pytest.raises(ValueError):
            new_course(name)
