from typing import Tuple

from gradeforge import config
from gradeforge.engine import ErrorCode, GradeError, OutcomeKind, round_2dp_half_up


def _pct(x: float) -> str:
    return f"{round_2dp_half_up(x):g}%"


def error_message(err: GradeError) -> str:
    """Markdown text for an engine error, ready for st.error()."""
    code = err.code
    name = err.category or "this category"

    if code == ErrorCode.MISSING_FINAL_CATEGORY:
        return "Missing **FINAL** row. (This should not happen.)"
    if code == ErrorCode.NO_NON_FINAL_CATEGORIES:
        return "Add at least **one** non-final category."
    if code == ErrorCode.BLANK_CATEGORY_NAME:
        return "Every non-final category needs a **name**."
    if code == ErrorCode.INVALID_WEIGHT:
        return "All weights must be valid **numbers**."
    if code == ErrorCode.NEGATIVE_WEIGHT:
        return "Weights cannot be **negative**."
    if code == ErrorCode.FINAL_WEIGHT_NOT_POSITIVE:
        return "Your **FINAL** weight must be greater than **0%**."
    if code == ErrorCode.WEIGHT_SUM_MISMATCH:
        return f"Your weights total **{_pct(err.actual)}**. They must equal **100%**."
    if code == ErrorCode.INVALID_SCORE:
        return f"Enter a valid number for **{name}**."
    if code == ErrorCode.SCORE_OUT_OF_RANGE:
        return (
            f"**{name}** must be between {config.SCORE_MIN:g} and {config.SCORE_MAX:g}."
        )
    if code == ErrorCode.INVALID_TARGET:
        return "Enter a valid **target course grade** (0-100)."
    if code == ErrorCode.TARGET_OUT_OF_RANGE:
        return "Target grade must be between **0** and **100**."
    return str(code.value)


# outcome -> (status, headline)
OUTCOME_HEADLINES = {
    OutcomeKind.UNREALISTIC: ("error", "⚠️ Unrealistic target (with current averages)"),
    OutcomeKind.ALREADY_SECURED: ("success", "🎉 Target already secured"),
    OutcomeKind.HIGH_EFFORT_REQUIRED: ("warning", "🟡 High final required"),
    OutcomeKind.ON_TRACK: ("success", "✅ You're on track"),
}


def outcome_message(outcome: OutcomeKind, required_final: float, target: float) -> Tuple[str, str, str]:
    """
    Returns (status, headline, detail). status is one of
    "success" / "warning" / "error" so the UI can pick the Streamlit call.
    """
    status, headline = OUTCOME_HEADLINES[outcome]
    req = _pct(required_final)
    tgt = _pct(target)

    if outcome == OutcomeKind.UNREALISTIC:
        detail = f"You would need **{req}** on the final. That's above 100%."
    elif outcome == OutcomeKind.ALREADY_SECURED:
        detail = f"Even a **0%** on the final would still keep you at or above **{tgt}**."
    elif outcome == OutcomeKind.HIGH_EFFORT_REQUIRED:
        detail = f"You need **{req}** on the final to hit **{tgt}**."
    else:
        detail = f"To finish with **{tgt}**, you need **{req}** on the final."

    return status, headline, detail
