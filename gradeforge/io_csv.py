import logging
from typing import List, Sequence

import pandas as pd

from gradeforge import config
from gradeforge.models import Category

logger = logging.getLogger(__name__)

# ------------------------
# CSV helpers (category table)
# ------------------------

_TRUTHY = {"1", "true", "yes", "y", "x"}


def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    # allow "category" for the name column
    if "category" in df.columns and "name" not in df.columns:
        df = df.rename(columns={"category": "name"})
    return df


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    df = pd.read_csv(uploaded_file, dtype=str, keep_default_na=False)
    return _normalise_cols(df)


def validate_categories_csv(df: pd.DataFrame) -> pd.DataFrame:
    required = {"name", "weight"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: Name, Weight.")
    cols = [c for c in ("name", "weight", "score", "final") if c in df.columns]
    out = df[cols].copy()
    out = out.rename(columns={c: c.capitalize() for c in cols})
    return out


def _cell(row: pd.Series, key: str) -> str:
    value = row.get(key)
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def parse_categories(df: pd.DataFrame) -> List[Category]:
    """
    Rows -> Category list. Without a Final column, a row named FINAL is the
    final row. Completely blank rows are skipped.
    """
    has_final_col = "Final" in df.columns
    rows = []
    for _, row in df.iterrows():
        name = _cell(row, "Name")
        weight = _cell(row, "Weight")
        score = _cell(row, "Score")
        if not name and not weight and not score:
            continue

        if has_final_col:
            is_final = _cell(row, "Final").lower() in _TRUTHY
        else:
            is_final = name.upper() == config.FINAL_CATEGORY_NAME

        rows.append(Category(
            name=config.FINAL_CATEGORY_NAME if is_final else name,
            weight=weight,
            score=None if is_final else score,
            is_final=is_final,
        ))

    logger.debug("Parsed %d categories from CSV", len(rows))
    return rows


def load_categories_csv(uploaded_file) -> List[Category]:
    return parse_categories(validate_categories_csv(read_csv_upload(uploaded_file)))


def categories_to_frame(categories: Sequence[Category]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Name": c.name,
                "Weight": "" if c.weight is None else c.weight,
                "Score": "" if c.score is None else c.score,
                "Final": c.is_final,
            }
            for c in categories
        ],
        columns=["Name", "Weight", "Score", "Final"],
    )


def categories_to_csv(categories: Sequence[Category]) -> str:
    return categories_to_frame(categories).to_csv(index=False)
