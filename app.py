import logging
from dataclasses import replace
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import streamlit as st

from gradeforge import config
from gradeforge.engine import (
    back_to_setup,
    compute_course_grade_for_final,
    GradeError,
    confirm_weights,
    plan_final,
    round_2dp_half_up,
    validate_category_set,
    what_if_table,
)
from gradeforge.io_csv import categories_to_csv, load_categories_csv
from gradeforge.io_json import export_courses, import_courses
from gradeforge.messages import error_message, outcome_message
from gradeforge.models import (
    Course,
    SETUP_STEP,
    add_category,
    apply_edits,
    final_category,
    final_row,
    new_course,
    non_final_categories,
    to_number,
    weight_total,
    weights_balanced,
)

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("gradeforge.app")

# ------------------------
# Streamlit UI
# ------------------------

st.set_page_config(
    page_title="GradeForge | Required Final Exam Calculator",
    page_icon="🎓",
    layout="wide",
)

if "courses" not in st.session_state:
    st.session_state["courses"] = []
    st.session_state["active_id"] = None


def get_courses() -> List[Course]:
    return st.session_state["courses"]


def get_active() -> Optional[Course]:
    active_id = st.session_state.get("active_id")
    for c in get_courses():
        if c.id == active_id:
            return c
    return None


def save_course(course: Course) -> None:
    st.session_state["courses"] = [
        course if c.id == course.id else c for c in get_courses()
    ]


def reset_editor(course: Course) -> None:
    st.session_state.pop(f"weights_seed_{course.id}", None)
    st.session_state.pop(f"final_weight_{course.id}", None)
    st.session_state[f"weights_version_{course.id}"] = (
        st.session_state.get(f"weights_version_{course.id}", 0) + 1
    )


def fmt_pct(x: float) -> str:
    return f"{round_2dp_half_up(x):g}%"


# ------------------------
# Sidebar: classes, export / import
# ------------------------

with st.sidebar:
    st.header("📚 Classes")

    with st.form("add_class_form", clear_on_submit=True):
        class_name = st.text_input("Class name", placeholder="e.g., Calculus I")
        if st.form_submit_button("+ Add class", type="primary"):
            try:
                created = new_course(class_name)
            except ValueError as e:
                st.error(str(e))
            else:
                st.session_state["courses"] = get_courses() + [created]
                st.session_state["active_id"] = created.id
                logger.info("Created class %s", created.name)
                st.toast(f'Created "{created.name}".')

    courses = sorted(get_courses(), key=lambda c: c.created_at, reverse=True)
    if not courses:
        st.info("No classes yet. Add one to build a grade calculator for a subject.")
    else:
        if get_active() is None:
            st.session_state["active_id"] = courses[0].id
        ids = [c.id for c in courses]
        names = {c.id: f"📁 {c.name} · {c.step_label}" for c in courses}
        st.session_state["active_id"] = st.radio(
            "Your classes",
            ids,
            index=ids.index(st.session_state["active_id"]),
            format_func=lambda cid: names[cid],
        )

    active = get_active()
    if st.button("🗑 Delete class", disabled=active is None):
        remaining = [c for c in get_courses() if c.id != active.id]
        st.session_state["courses"] = remaining
        st.session_state["active_id"] = remaining[0].id if remaining else None
        logger.info("Deleted class %s", active.name)
        st.toast("Class deleted.")
        st.rerun()

    st.markdown("---")
    st.download_button(
        "⬇ Export JSON",
        data=export_courses(get_courses()),
        file_name=config.EXPORT_FILENAME,
        mime="application/json",
    )
    import_file = st.file_uploader("Import JSON", type=["json"], key="import_json")
    if import_file is not None and st.button("⬆ Import classes"):
        try:
            merged = import_courses(import_file.getvalue().decode("utf-8"), get_courses())
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning("Import failed: %s", e)
            st.error("Import failed (invalid JSON).")
        else:
            st.session_state["courses"] = merged
            st.session_state["active_id"] = merged[0].id if merged else None
            st.toast("Imported classes.")
            st.rerun()


# ------------------------
# Step 1: categories + weights
# ------------------------

def weights_seed(course: Course) -> pd.DataFrame:
    key = f"weights_seed_{course.id}"
    if key not in st.session_state:
        st.session_state[key] = pd.DataFrame(
            [
                {"Key": c.key, "Name": c.name, "Weight": to_number(c.weight)}
                for c in non_final_categories(course.categories)
            ],
            columns=["Key", "Name", "Weight"],
        )
    return st.session_state[key]


def editor_rows(df: pd.DataFrame) -> List[Tuple[str, str, Optional[float]]]:
    rows = []
    for _, row in df.iterrows():
        key = row.get("Key")
        name = row.get("Name")
        weight = row.get("Weight")
        rows.append((
            "" if pd.isna(key) else str(key),
            "" if pd.isna(name) else str(name),
            None if pd.isna(weight) else float(weight),
        ))
    return rows


def render_setup(course: Course) -> None:
    st.caption("Step 1: Define grade categories + weights (must total 100%).")

    col_main, col_tips = st.columns([3, 2])

    with col_main:
        st.subheader("Grade Categories")
        st.markdown(
            "Add categories like **Quizzes**, **Homework**, **Exams**. The **FINAL** row is locked. "
            f"Add up to **{config.MAX_CATEGORY_ROWS}** total rows."
        )

        csv_file = st.file_uploader(
            "Optionally upload categories CSV (Name, Weight, Score, Final)",
            type=["csv"],
            key=f"categories_csv_{course.id}",
        )
        if csv_file is not None and st.button("Use uploaded categories"):
            try:
                loaded = load_categories_csv(csv_file)
                rows = [final_category(loaded) or final_row()]
                for cat in non_final_categories(loaded):
                    # raises ValueError at the row limit
                    rows = add_category(rows, cat)
            except ValueError as e:
                st.error(f"Categories CSV error: {e}")
            else:
                course = replace(course, categories=rows)
                save_course(course)
                reset_editor(course)
                st.rerun()

        version = st.session_state.get(f"weights_version_{course.id}", 0)
        edited = st.data_editor(
            weights_seed(course),
            key=f"weights_editor_{course.id}_{version}",
            num_rows="dynamic",
            use_container_width=True,
            column_config={
                "Key": None,
                "Name": st.column_config.TextColumn("Category", help="e.g., Quizzes"),
                "Weight": st.column_config.NumberColumn("Weight (%)", step=0.5, format="%.2f"),
            },
        )

        edits = editor_rows(edited)
        rows = apply_edits(course.categories, edits)
        if len(rows) - 1 < len(edits):
            st.warning(f"Max {config.MAX_CATEGORY_ROWS} rows reached.")

        final = final_category(course.categories)
        final_weight = st.number_input(
            "🔒 FINAL weight (%)",
            value=to_number(final.weight) if final and np.isfinite(to_number(final.weight)) else None,
            step=0.5,
            key=f"final_weight_{course.id}",
        )
        rows[-1] = replace(rows[-1], weight=final_weight)

        course = replace(course, categories=rows)
        save_course(course)

        total = weight_total(rows)
        if weights_balanced(total):
            st.success(f"Total: {fmt_pct(total)}")
        else:
            st.info(f"Total: {fmt_pct(total)}")

        if st.button("Next →", type="primary"):
            result = confirm_weights(course)
            if isinstance(result, GradeError):
                st.error(f"⚠️ {error_message(result)}  \nFix the weights and try again.")
            else:
                save_course(result)
                reset_editor(result)
                st.toast("Weights confirmed, moving to target + scores.")
                st.rerun()

    with col_tips:
        st.subheader("Pro Tips")
        st.markdown(
            "- Weights must sum to **exactly 100%**.\n"
            "- Use your syllabus category names.\n"
            "- If your final replaces a test grade, model that by adjusting category weights.\n"
        )
        st.subheader("Quick Examples")
        st.markdown(
            "**Example A**: Homework 20, Quizzes 30, Exams 30, Final 20  \n"
            "**Example B**: Labs 25, Projects 35, Midterms 20, Final 20"
        )
        st.download_button(
            "Download categories CSV",
            data=categories_to_csv(course.categories),
            file_name=f"{course.name}-categories.csv",
            mime="text/csv",
        )


# ------------------------
# Step 2: target + scores
# ------------------------

def render_target(course: Course) -> None:
    st.caption("Step 2: Enter current averages + target grade to compute required final score.")

    final = final_category(course.categories)
    non_final = non_final_categories(course.categories)

    col_inputs, col_results = st.columns(2)

    with col_inputs:
        st.subheader("Target + Current Averages")
        target = st.text_input(
            "Target Course Grade (%)",
            value="" if course.target is None else str(course.target),
            placeholder="e.g., 90",
            key=f"target_{course.id}",
        )

        st.markdown("**Current Category Averages** (excluding FINAL)")
        scores = []
        for cat in non_final:
            scores.append(st.text_input(
                f"{cat.name} (weight {to_number(cat.weight):g}%)",
                value="" if cat.score is None else str(cat.score),
                placeholder="0",
                key=f"score_{course.id}_{cat.key}",
            ))

        updated = [replace(cat, score=s) for cat, s in zip(non_final, scores)] + [final]
        course = replace(course, categories=updated, target=target)
        save_course(course)

        if st.button("← Back"):
            save_course(back_to_setup(course))
            st.rerun()

    with col_results:
        st.subheader("Results")
        plan = plan_final(course.categories, course.target)
        if not plan.ok:
            st.error(f"⚠️ {error_message(plan)}")
            st.markdown("_Fix inputs to compute…_")
        else:
            status, headline, detail = outcome_message(
                plan.outcome, plan.required_final, plan.target
            )
            getattr(st, status)(f"**{headline}**  \n{detail}")

            st.progress(float(min(max(plan.required_final, 0.0), 100.0)) / 100.0)

            c1, c2 = st.columns(2)
            with c1:
                st.metric("Non-final contribution", fmt_pct(plan.non_final_contribution))
                st.metric("Final weight", fmt_pct(plan.final_weight))
            with c2:
                st.metric("Target course grade", fmt_pct(plan.target))
                st.metric("Required final score", fmt_pct(plan.required_final))

            st.markdown(
                "**Formula**: Required Final = (Target − NonFinalContribution) ÷ FinalWeight  \n"
                "_Where FinalWeight is in decimal form (e.g., 20% → 0.20)._"
            )

        st.markdown("---")
        st.subheader("What-If Mode")
        what_if = st.slider(
            "Assumed Final Exam Score",
            min_value=0,
            max_value=100,
            value=config.DEFAULT_WHAT_IF_SCORE,
            key=f"what_if_{course.id}",
        )
        projected = compute_course_grade_for_final(non_final, final.weight, what_if)
        w1, w2 = st.columns(2)
        with w1:
            st.metric("Final", f"{what_if}%")
        with w2:
            st.metric("Course", fmt_pct(projected) if np.isfinite(projected) else "—%")

        if np.isfinite(projected):
            st.dataframe(what_if_table(non_final, final.weight), hide_index=True)


# ------------------------
# Main
# ------------------------

course = get_active()
if course is None:
    st.title("🎓 GradeForge")
    st.write(
        "Set category weights (including a final), then compute what you need on the "
        "final to reach a target grade."
    )
    st.info("Add a class in the sidebar to start.")
else:
    st.title(course.name)
    # imported classes may land on step 2 with an unusable category set
    if course.step == SETUP_STEP or validate_category_set(course.categories) is not None:
        render_setup(course)
    else:
        render_target(course)
