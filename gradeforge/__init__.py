from gradeforge.engine import (
    CalcError,
    ErrorCode,
    FinalPlan,
    GradeError,
    OutcomeKind,
    RequiredFinalResult,
    ValidationError,
    classify_outcome,
    compute_course_grade_for_final,
    compute_required_final,
    plan_final,
    validate_category_set,
    validate_target,
)
from gradeforge.models import Category, Course, new_course

__version__ = "0.1.0"
