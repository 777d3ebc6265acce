import logging
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from gradeforge import config
from gradeforge.models import (
    Category,
    Course,
    Number,
    SETUP_STEP,
    TARGET_STEP,
    final_category,
    non_final_categories,
    to_number,
)

logger = logging.getLogger(__name__)


# ------------------------
# Result / error values
# ------------------------
class ErrorCode(str, Enum):
    MISSING_FINAL_CATEGORY = "missing_final_category"
    NO_NON_FINAL_CATEGORIES = "no_non_final_categories"
    BLANK_CATEGORY_NAME = "blank_category_name"
    INVALID_WEIGHT = "invalid_weight"
    NEGATIVE_WEIGHT = "negative_weight"
    FINAL_WEIGHT_NOT_POSITIVE = "final_weight_not_positive"
    WEIGHT_SUM_MISMATCH = "weight_sum_mismatch"
    INVALID_SCORE = "invalid_score"
    SCORE_OUT_OF_RANGE = "score_out_of_range"
    INVALID_TARGET = "invalid_target"
    TARGET_OUT_OF_RANGE = "target_out_of_range"


@dataclass(frozen=True)
class GradeError:
    code: ErrorCode
    category: Optional[str] = None
    actual: Optional[float] = None

    ok = False


@dataclass(frozen=True)
class ValidationError(GradeError):
    """Configuration problem found while checking a category set."""


@dataclass(frozen=True)
class CalcError(GradeError):
    """Input problem found while computing the required final."""


@dataclass(frozen=True)
class RequiredFinalResult:
    non_final_contribution: float
    required_final: float

    ok = True


class OutcomeKind(str, Enum):
    UNREALISTIC = "unrealistic"
    ALREADY_SECURED = "already_secured"
    HIGH_EFFORT_REQUIRED = "high_effort_required"
    ON_TRACK = "on_track"


@dataclass(frozen=True)
class FinalPlan:
    target: float
    final_weight: float
    non_final_contribution: float
    required_final: float
    outcome: OutcomeKind

    ok = True


# ------------------------
# Helpers
# ------------------------
def round_2dp_half_up(x: float) -> float:
    if not np.isfinite(x):
        return x
    return float(Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _weights_and_scores(categories: Sequence[Category]) -> Tuple[np.ndarray, np.ndarray]:
    weights = np.array([c.weight_value for c in categories], dtype=float)
    scores = np.array([c.score_value for c in categories], dtype=float)
    return weights, scores


def weighted_contribution(weights: np.ndarray, scores: np.ndarray) -> float:
    """
    Points already earned on the 100-point course scale:
    sum(weight_i * score_i) / 100
    """
    if weights.size == 0:
        return 0.0
    return float(np.dot(weights, scores) / 100.0)


# ------------------------
# Validator
# ------------------------
def validate_category_set(categories: Sequence[Category]) -> Optional[ValidationError]:
    """
    Check a category set before leaving the Setup step.

    Returns None when the set is usable, otherwise the first rule broken:
    final row present, at least one other row, names filled in, weights
    numeric and non-negative, final weight > 0, weights totalling 100.
    """
    err = _first_validation_error(categories)
    if err is not None:
        logger.debug("Category set rejected: %s", err)
    return err


def _first_validation_error(categories: Sequence[Category]) -> Optional[ValidationError]:
    final = final_category(categories)
    if final is None:
        return ValidationError(ErrorCode.MISSING_FINAL_CATEGORY)

    others = non_final_categories(categories)
    if len(others) < 1:
        return ValidationError(ErrorCode.NO_NON_FINAL_CATEGORIES)

    for cat in others:
        if not (cat.name or "").strip():
            return ValidationError(ErrorCode.BLANK_CATEGORY_NAME)

    total = 0.0
    for cat in categories:
        w = cat.weight_value
        if not np.isfinite(w):
            return ValidationError(ErrorCode.INVALID_WEIGHT, category=cat.name)
        if w < 0:
            return ValidationError(ErrorCode.NEGATIVE_WEIGHT, category=cat.name, actual=w)
        total += w

    fw = final.weight_value
    if not np.isfinite(fw) or fw <= 0:
        return ValidationError(ErrorCode.FINAL_WEIGHT_NOT_POSITIVE, actual=fw)

    if abs(total - config.WEIGHT_TOTAL) > config.WEIGHT_TOLERANCE:
        return ValidationError(ErrorCode.WEIGHT_SUM_MISMATCH, actual=total)

    return None


def confirm_weights(course: Course) -> Union[Course, ValidationError]:
    """Setup -> Target, only if the category set validates."""
    err = validate_category_set(course.categories)
    if err is not None:
        return err
    return replace(course, step=TARGET_STEP)


def back_to_setup(course: Course) -> Course:
    return replace(course, step=SETUP_STEP)


# ------------------------
# Required final
# ------------------------
def validate_target(target: Number) -> Optional[CalcError]:
    t = to_number(target)
    if not np.isfinite(t):
        return CalcError(ErrorCode.INVALID_TARGET)
    if t < config.SCORE_MIN or t > config.SCORE_MAX:
        return CalcError(ErrorCode.TARGET_OUT_OF_RANGE, actual=t)
    return None


def compute_required_final(non_final: Sequence[Category],
                           final_weight_pct: Number,
                           target_pct: Number) -> Union[RequiredFinalResult, CalcError]:
    """
    Score needed on the final to finish the course at target_pct.

    required = (target - non_final_contribution) / (final_weight / 100)

    The result is not clamped: below 0 means the target is already secured,
    above 100 means it cannot be reached with the current averages.
    """
    for cat in non_final:
        w = cat.weight_value
        s = cat.score_value
        if not np.isfinite(w):
            return _calc_error(ErrorCode.INVALID_WEIGHT, category=cat.name)
        if not np.isfinite(s):
            return _calc_error(ErrorCode.INVALID_SCORE, category=cat.name)
        if s < config.SCORE_MIN or s > config.SCORE_MAX:
            return _calc_error(ErrorCode.SCORE_OUT_OF_RANGE, category=cat.name, actual=s)

    weights, scores = _weights_and_scores(non_final)
    contribution = weighted_contribution(weights, scores)

    fw = to_number(final_weight_pct)
    if not np.isfinite(fw) or fw <= 0:
        return _calc_error(ErrorCode.FINAL_WEIGHT_NOT_POSITIVE, actual=fw)

    fraction = fw / 100.0
    required = (to_number(target_pct) - contribution) / fraction

    return RequiredFinalResult(
        non_final_contribution=contribution,
        required_final=required,
    )


def _calc_error(code: ErrorCode, **kwargs) -> CalcError:
    err = CalcError(code, **kwargs)
    logger.debug("Required final not computed: %s", err)
    return err


def classify_outcome(required_final: float) -> OutcomeKind:
    # order matters: exactly 100 is high effort, exactly 0 is on track
    if required_final > config.UNREALISTIC_ABOVE:
        return OutcomeKind.UNREALISTIC
    elif required_final < 0:
        return OutcomeKind.ALREADY_SECURED
    elif required_final >= config.HIGH_EFFORT_THRESHOLD:
        return OutcomeKind.HIGH_EFFORT_REQUIRED
    else:
        return OutcomeKind.ON_TRACK


def plan_final(categories: Sequence[Category], target: Number) -> Union[FinalPlan, GradeError]:
    """Everything the Target step shows, or the first error in the way."""
    err = validate_category_set(categories)
    if err is not None:
        return err

    err = validate_target(target)
    if err is not None:
        return err

    final_weight = final_category(categories).weight_value
    t = to_number(target)
    result = compute_required_final(non_final_categories(categories), final_weight, t)
    if not result.ok:
        return result

    return FinalPlan(
        target=t,
        final_weight=final_weight,
        non_final_contribution=result.non_final_contribution,
        required_final=result.required_final,
        outcome=classify_outcome(result.required_final),
    )


# ------------------------
# What-if projection
# ------------------------
def compute_course_grade_for_final(non_final: Sequence[Category],
                                   final_weight_pct: Number,
                                   hypothetical_final_score: Number) -> float:
    """
    Course grade if the final comes in at hypothetical_final_score.
    NaN means the inputs can't produce a result.
    """
    weights, scores = _weights_and_scores(non_final)
    if not (np.all(np.isfinite(weights)) and np.all(np.isfinite(scores))):
        return float("nan")

    contribution = weighted_contribution(weights, scores)
    fw = to_number(final_weight_pct)
    return float(contribution + (fw / 100.0) * to_number(hypothetical_final_score))


def what_if_table(non_final: Sequence[Category],
                  final_weight_pct: Number,
                  final_scores: Iterable[float] = config.WHAT_IF_TABLE_SCORES) -> pd.DataFrame:
    rows: List[dict] = []
    for score in final_scores:
        course = compute_course_grade_for_final(non_final, final_weight_pct, score)
        rows.append({
            "Final score": float(score),
            "Course grade": round_2dp_half_up(course),
        })
    return pd.DataFrame(rows, columns=["Final score", "Course grade"])
