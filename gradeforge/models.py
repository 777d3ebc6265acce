import math
import time
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from gradeforge import config

Number = Union[float, int, str, None]


def to_number(value: Number) -> float:
    """
    Parse a weight, score or target the way a text field would be read.
    Blank, missing or unparsable values come back as NaN, so an empty
    field reads as "not entered" (INVALID_WEIGHT / INVALID_SCORE in the
    engine), never as 0.
    """
    if value is None or isinstance(value, bool):
        return float("nan")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return float("nan")
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def new_row_key() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Category:
    name: str = ""
    weight: Number = None
    score: Number = None
    is_final: bool = False
    # row identity while editing; not part of equality
    key: str = field(default_factory=new_row_key, compare=False)

    @property
    def weight_value(self) -> float:
        return to_number(self.weight)

    @property
    def score_value(self) -> float:
        return to_number(self.score)


def final_row() -> Category:
    return Category(name=config.FINAL_CATEGORY_NAME, is_final=True)


def default_categories() -> List[Category]:
    # two blank rows + the locked FINAL row
    rows = [Category() for _ in range(config.DEFAULT_BLANK_ROWS)]
    rows.append(final_row())
    return rows


# ------------------------
# Category set helpers
# ------------------------
def final_category(categories: Sequence[Category]) -> Optional[Category]:
    for cat in categories:
        if cat.is_final:
            return cat
    return None


def final_index(categories: Sequence[Category]) -> int:
    for idx, cat in enumerate(categories):
        if cat.is_final:
            return idx
    return -1


def non_final_categories(categories: Sequence[Category]) -> List[Category]:
    return [cat for cat in categories if not cat.is_final]


def can_add_category(categories: Sequence[Category]) -> bool:
    return len(categories) < config.MAX_CATEGORY_ROWS


def add_category(categories: Sequence[Category], category: Optional[Category] = None) -> List[Category]:
    """
    Insert a new row just before FINAL so the final row stays last.
    """
    if not can_add_category(categories):
        raise ValueError(f"Max {config.MAX_CATEGORY_ROWS} rows reached.")

    rows = list(categories)
    new_row = category if category is not None else Category()
    idx = final_index(rows)
    insert_at = idx if idx >= 0 else len(rows)
    rows.insert(insert_at, new_row)
    return rows


def apply_edits(categories: Sequence[Category], edited: Iterable[Tuple[str, str, Number]]) -> List[Category]:
    """
    Rebuild a category set from editor rows of (key, name, weight).

    Scores follow their row by key, so deleting or reordering rows never
    moves a score onto another category. Rows without a key are new. The
    FINAL row is kept last; rows past the row limit are dropped.
    """
    scores = {c.key: c.score for c in categories if not c.is_final}
    rows = [final_category(categories) or final_row()]
    for key, name, weight in edited:
        if not can_add_category(rows):
            break
        rows = add_category(rows, Category(
            name=name,
            weight=weight,
            score=scores.get(key),
            key=key or new_row_key(),
        ))
    return rows


def weight_total(categories: Sequence[Category]) -> float:
    """Running total shown while editing; unparsable weights count as 0."""
    total = 0.0
    for cat in categories:
        w = cat.weight_value
        if math.isfinite(w):
            total += w
    return total


def weights_balanced(total: float) -> bool:
    return abs(total - config.WEIGHT_TOTAL) < config.WEIGHT_TOLERANCE


# ------------------------
# Courses
# ------------------------
SETUP_STEP = 1
TARGET_STEP = 2


@dataclass(frozen=True)
class Course:
    id: str
    name: str
    step: int = SETUP_STEP
    categories: List[Category] = field(default_factory=default_categories)
    target: Number = None
    created_at: int = 0

    @property
    def step_label(self) -> str:
        return "Setup" if self.step == SETUP_STEP else "Target"


def new_course(name: str) -> Course:
    name = (name or "").strip()
    if not name:
        raise ValueError("Type a class name first.")
    return Course(
        id=str(uuid.uuid4()),
        name=name,
        created_at=int(time.time() * 1000),
    )
