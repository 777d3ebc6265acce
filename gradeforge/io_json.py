import json
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from gradeforge import config
from gradeforge.models import SETUP_STEP, TARGET_STEP, Category, Course

logger = logging.getLogger(__name__)


def _category_to_dict(cat: Category) -> dict:
    return {
        "name": cat.name,
        "weight": "" if cat.weight is None else cat.weight,
        "score": "" if cat.score is None else cat.score,
        "locked": cat.is_final,
    }


def _category_from_dict(data: dict) -> Category:
    name = str(data.get("name") or "")
    is_final = bool(data.get("locked")) or name.upper() == config.FINAL_CATEGORY_NAME
    return Category(
        name=config.FINAL_CATEGORY_NAME if is_final else name,
        weight=data.get("weight"),
        score=data.get("score"),
        is_final=is_final,
    )


def course_to_dict(course: Course) -> dict:
    return {
        "id": course.id,
        "name": course.name,
        "step": course.step,
        "categories": [_category_to_dict(c) for c in course.categories],
        "target": "" if course.target is None else course.target,
        "createdAt": course.created_at,
    }


def _created_at(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def course_from_dict(data: dict) -> Course:
    step = data.get("step")
    categories = data.get("categories")
    if not isinstance(categories, list):
        categories = []
    return Course(
        id=str(data["id"]),
        name=str(data["name"]),
        step=TARGET_STEP if step == TARGET_STEP else SETUP_STEP,
        categories=[_category_from_dict(c) for c in categories if isinstance(c, dict)],
        target=data.get("target"),
        created_at=_created_at(data.get("createdAt")),
    )


def export_courses(courses: Sequence[Course], exported_at: Optional[datetime] = None) -> str:
    exported_at = exported_at or datetime.now(timezone.utc)
    payload = {
        "exportedAt": exported_at.isoformat(),
        "app": config.EXPORT_APP_NAME,
        "version": config.EXPORT_VERSION,
        "classes": [course_to_dict(c) for c in courses],
    }
    return json.dumps(payload, indent=2)


def import_courses(text: str, existing: Sequence[Course] = ()) -> List[Course]:
    """
    Merge an export file into the existing courses. Imported courses go
    first; ids that clash with an existing course get a fresh id.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Import failed (invalid JSON): {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("classes"), list):
        raise ValueError("Import failed (invalid file): no 'classes' list.")

    existing_ids = {c.id for c in existing}
    incoming = []
    for data in payload["classes"]:
        if not isinstance(data, dict) or not data.get("id") or not data.get("name"):
            continue
        if data["id"] in existing_ids:
            data = dict(data, id=str(uuid.uuid4()))
        incoming.append(course_from_dict(data))

    logger.info("Imported %d classes", len(incoming))
    return incoming + list(existing)
