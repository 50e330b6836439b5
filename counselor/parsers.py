from typing import Dict, Any, Iterable, List, Optional, Union
import json
import logging

from .models import AcademicYear, Course, CourseStatus, DegreePlan

logger = logging.getLogger(__name__)


def _parse_credits(credits: Any) -> float:
    """
    Parse credits to ensure it's a float value

    Args:
        credits: Input credits value

    Returns:
        Float representation of credits, defaults to 0 if conversion fails
    """
    try:
        # Handle string, int, or float inputs
        if isinstance(credits, str):
            # Keep digits and the decimal point ("3 cr" -> "3")
            credits = ''.join(c for c in credits if c.isdigit() or c == '.')

        value = float(credits) if credits else 0.0
        return value if value > 0 else 0.0
    except (ValueError, TypeError):
        return 0.0


def _parse_bool(value: Any) -> bool:
    """
    Parse boolean value safely

    Args:
        value: Input value to convert to boolean

    Returns:
        Boolean representation of the input
    """
    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        return value.strip().lower() in ['true', '1', 'yes', 'y']

    return bool(value)


def _parse_id(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return str(value)


def _parse_status(value: Any) -> CourseStatus:
    """Status from free text such as "In Progress" or "in_progress"."""
    if isinstance(value, CourseStatus):
        return value
    text = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
    if not text:
        return CourseStatus.NOT_TAKEN
    try:
        return CourseStatus(text)
    except ValueError:
        logger.warning(f"Unknown course status '{value}', using not-taken")
        return CourseStatus.NOT_TAKEN


def _first(record: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key wins; lets camelCase UI records and snake_case mix."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


# ▸ Courses
def parse_course(record: Union[Course, Dict[str, Any]]) -> Course:
    """
    Normalise one course record into a Course.

    Accepts the camelCase shape saved by the planner UI (isRequired,
    isRetake, originalId) or snake_case keys. Credits, flags and status are
    coerced before validation.
    """
    if isinstance(record, Course):
        return record

    status = _parse_status(_first(record, "status", "Status", default=""))

    return Course(
        id=_parse_id(_first(record, "id")),
        name=str(_first(record, "name", "Course", "course_name", default="")).strip(),
        credits=_parse_credits(_first(record, "credits", "Credits")),
        status=status,
        grade=_first(record, "grade", "Grade", default=""),
        ucore=_first(record, "ucore", default=[]),
        is_required=_parse_bool(_first(record, "is_required", "isRequired", "Required", default=False)),
        is_retake=_parse_bool(_first(record, "is_retake", "isRetake", "Retake", default=False)),
        original_id=_parse_id(_first(record, "original_id", "originalId")),
        note=str(_first(record, "note", "footnote", default="")),
    )


def parse_courses(records: Optional[Iterable[Union[Course, Dict[str, Any]]]]) -> List[Course]:
    """Parse a list of course records, skipping empty rows."""
    courses = []
    for record in records or []:
        if not record:
            continue
        courses.append(parse_course(record))
    return courses


# ▸ Degree plans
def _parse_program_names(value: Any) -> List[str]:
    names = []
    for item in value or []:
        if isinstance(item, dict):
            item = item.get("name") or item.get("title") or ""
        item = str(item).strip()
        if item:
            names.append(item)
    return names


def _parse_primary_major(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get("name") or value.get("title")
    return str(value).strip() if value else None


def parse_degree_plan(json_text: Union[str, Dict[str, Any]]) -> DegreePlan:
    """
    Parse a saved degree plan (JSON string *or* dict) into a DegreePlan.

    The saved shape is
    {
        "courses": {"1-Fall": [ {...}, ... ], ...},
        "selectedDegree": {...} | "name",
        "years": [ {"id": 1, "name": "2024-2025"}, ... ],
        "additionalMajors": [...], "minors": [...], "certificates": [...]
    }
    snake_case equivalents are accepted as well.
    """
    data: Dict[str, Any] = (
        json_text if isinstance(json_text, dict) else json.loads(json_text)
    )

    years = [
        AcademicYear(id=int(y.get("id")), name=str(y.get("name", "")))
        for y in _first(data, "years", default=[])
        if isinstance(y, dict) and y.get("id") is not None
    ]

    courses_raw = _first(data, "courses", default={})
    courses: Dict[str, List[Course]] = {}
    for key, records in courses_raw.items():
        courses[str(key)] = parse_courses(records)

    plan = DegreePlan(
        primary_major=_parse_primary_major(_first(data, "primary_major", "primaryMajor", "selectedDegree")),
        additional_majors=_parse_program_names(_first(data, "additional_majors", "additionalMajors")),
        minors=_parse_program_names(_first(data, "minors")),
        certificates=_parse_program_names(_first(data, "certificates")),
        years=years,
        courses=courses,
    )
    logger.debug(
        f"Parsed plan with {len(plan.years)} years and "
        f"{sum(len(v) for v in plan.courses.values())} courses"
    )
    return plan


def course_to_dict(course: Course) -> Dict[str, Any]:
    """Course in the camelCase shape the planner UI stores."""
    return {
        "id": course.id,
        "name": course.name,
        "credits": course.credits,
        "status": course.status.value,
        "grade": course.grade,
        "ucore": list(course.ucore),
        "isRequired": course.is_required,
        "isRetake": course.is_retake,
        "originalId": course.original_id,
        "note": course.note,
    }


def plan_to_dict(plan: DegreePlan) -> Dict[str, Any]:
    """Inverse of parse_degree_plan(); JSON-serialisable."""
    return {
        "courses": {
            key: [course_to_dict(c) for c in term_courses]
            for key, term_courses in plan.courses.items()
        },
        "selectedDegree": plan.primary_major,
        "years": [{"id": y.id, "name": y.name} for y in plan.years],
        "additionalMajors": list(plan.additional_majors),
        "minors": list(plan.minors),
        "certificates": list(plan.certificates),
    }
