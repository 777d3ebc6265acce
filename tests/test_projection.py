"""
Test: what-if projection of the course grade.
"""
import math

import pytest

from gradeforge.engine import compute_course_grade_for_final, round_2dp_half_up, what_if_table
from gradeforge.models import Category


class TestCourseGradeForFinal:
    def test_default_slider_value(self, non_final):
        assert compute_course_grade_for_final(non_final, 20, 85) == pytest.approx(84.5)

    def test_zero_final(self, non_final):
        assert compute_course_grade_for_final(non_final, 20, 0) == pytest.approx(67.5)

    def test_unbounded(self, non_final):
        assert compute_course_grade_for_final(non_final, 20, 150) == pytest.approx(97.5)
        assert compute_course_grade_for_final(non_final, 20, -50) == pytest.approx(57.5)

    @pytest.mark.parametrize("score", [float("nan"), "n/a", "", None])
    def test_bad_score_is_nan(self, score):
        rows = [Category("Homework", 40, 90), Category("Quizzes", 40, score)]
        assert math.isnan(compute_course_grade_for_final(rows, 20, 85))

    def test_bad_weight_is_nan(self):
        rows = [Category("Homework", "forty", 90)]
        assert math.isnan(compute_course_grade_for_final(rows, 60, 85))

    def test_returns_plain_float(self, non_final):
        assert type(compute_course_grade_for_final(non_final, 20, 85)) is float


class TestWhatIfTable:
    def test_default_scores(self, non_final):
        df = what_if_table(non_final, 20)
        assert list(df.columns) == ["Final score", "Course grade"]
        assert df["Final score"].tolist() == [50, 60, 70, 80, 90, 100]
        assert df["Course grade"].tolist() == [77.5, 79.5, 81.5, 83.5, 85.5, 87.5]

    def test_custom_scores(self, non_final):
        df = what_if_table(non_final, 20, final_scores=[87.5])
        assert df["Course grade"].tolist() == [85.0]


class TestRounding:
    @pytest.mark.parametrize("x, expected", [
        (87.505, 87.51),
        (1.005, 1.01),
        (-37.5, -37.5),
        (2.0 / 3.0, 0.67),
    ])
    def test_half_up(self, x, expected):
        assert round_2dp_half_up(x) == expected

    def test_non_finite_passthrough(self):
        assert math.isnan(round_2dp_half_up(float("nan")))
        assert round_2dp_half_up(float("inf")) == float("inf")
