"""
Shared fixtures: the Homework / Quizzes / Exams / Final course used
throughout the engine tests.
"""
import pytest

from gradeforge.models import Category


@pytest.fixture
def categories():
    return [
        Category("Homework", 20, 90),
        Category("Quizzes", 30, 85),
        Category("Exams", 30, 80),
        Category("FINAL", 20, is_final=True),
    ]


@pytest.fixture
def non_final(categories):
    return [c for c in categories if not c.is_final]
