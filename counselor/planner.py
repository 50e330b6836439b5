"""
Degree Planner Module

Term-by-term degree plan editing. Plans are keyed "<year id>-<term>" and
every editing function returns a new DegreePlan, leaving its input
untouched, so snapshots can be kept in PlanHistory for undo/redo.

Editing rules applied by update_course():
- Renaming a course picks up UCORE tags written in brackets ("[WRTG]")
- Entering an F on a course marks it failed and schedules a retake in the
  next term that still has room
- Marking a course completed without a grade records an A
- Moving a course back to not-taken or planned clears its grade
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .config import config
from .gpa import GPACalculator, create_gpa_calculator
from .models import AcademicYear, Course, CourseStatus, DegreePlan, PlanStatistics
from .overlap import analyze_course_overlaps, get_overlap_summary
from .requirements import extract_ucore_categories

logger = logging.getLogger(__name__)

TERMS = ("Fall", "Spring", "Summer")
DEFAULT_START_YEAR = 2024
DEFAULT_YEAR_COUNT = 5
COURSES_PER_TERM = 5
DEFAULT_CREDITS = 3

YEAR_NAMES = (
    "First Year", "Second Year", "Third Year", "Fourth Year",
    "Fifth Year", "Sixth Year", "Seventh Year", "Eighth Year",
)

PROGRAM_FIELDS = {
    "major": "additional_majors",
    "minor": "minors",
    "certificate": "certificates",
}


def new_course_id() -> str:
    return uuid.uuid4().hex


def term_key(year_id: int, term: str) -> str:
    """Plan key for a term, e.g. term_key(1, "Fall") -> "1-Fall"."""
    if term not in TERMS:
        raise ValueError(f"Unknown term '{term}'. Choose one of: {', '.join(TERMS)}")
    return f"{year_id}-{term}"


def year_label(index: int) -> str:
    """Display label for the n-th plan year (0-based)."""
    return YEAR_NAMES[index] if index < len(YEAR_NAMES) else f"Year {index + 1}"


def default_years(start_year: int = DEFAULT_START_YEAR, count: int = DEFAULT_YEAR_COUNT) -> List[AcademicYear]:
    """Consecutive academic years, ids starting at 1 ("2024-2025", ...)."""
    return [
        AcademicYear(id=i + 1, name=f"{start_year + i}-{start_year + i + 1}")
        for i in range(count)
    ]


def create_initial_courses_structure(years: Iterable[AcademicYear]) -> Dict[str, List[Course]]:
    """Empty course list for every term of every year."""
    return {term_key(year.id, term): [] for year in years for term in TERMS}


def new_plan(start_year: int = DEFAULT_START_YEAR, count: int = DEFAULT_YEAR_COUNT) -> DegreePlan:
    years = default_years(start_year, count)
    return DegreePlan(years=years, courses=create_initial_courses_structure(years))


def reset_plan() -> DegreePlan:
    """
    Fresh plan with the default years and no courses.

    Program selections (majors, minors, certificates) are cleared too.
    """
    logger.info("Degree plan reset")
    return new_plan()


def add_year(plan: DegreePlan) -> DegreePlan:
    """Append the next academic year and its empty terms."""
    updated = plan.model_copy(deep=True)
    next_id = max((y.id for y in updated.years), default=0) + 1
    start = DEFAULT_START_YEAR + len(updated.years)
    if updated.years:
        first, _, _ = updated.years[-1].name.partition("-")
        if first.isdigit():
            start = int(first) + 1
    year = AcademicYear(id=next_id, name=f"{start}-{start + 1}")
    updated.years.append(year)
    updated.courses.update(create_initial_courses_structure([year]))
    return updated


# ▸ Programs
def add_program(plan: DegreePlan, kind: str, name: str) -> DegreePlan:
    """Declare an additional major, minor or certificate."""
    field = PROGRAM_FIELDS.get(kind)
    if field is None:
        raise ValueError(f"Unknown program kind '{kind}'. Choose one of: {', '.join(PROGRAM_FIELDS)}")
    name = (name or "").strip()
    updated = plan.model_copy(deep=True)
    programs = getattr(updated, field)
    if name and name not in programs:
        programs.append(name)
    return updated


def remove_program(plan: DegreePlan, kind: str, name: str) -> DegreePlan:
    field = PROGRAM_FIELDS.get(kind)
    if field is None:
        raise ValueError(f"Unknown program kind '{kind}'. Choose one of: {', '.join(PROGRAM_FIELDS)}")
    updated = plan.model_copy(deep=True)
    setattr(updated, field, [p for p in getattr(updated, field) if p != name])
    return updated


# ▸ Courses
def all_courses(plan: DegreePlan) -> List[Course]:
    """Every course in the plan, in term-key order of insertion."""
    return [course for term_courses in plan.courses.values() for course in term_courses]


def term_credits(plan: DegreePlan, key: str) -> int:
    """Whole credits scheduled in a term; fractional credits are truncated."""
    return sum(int(c.credits) for c in plan.courses.get(key, []))


def add_course(
    plan: DegreePlan,
    year_id: int,
    term: str,
    course: Optional[Course] = None,
) -> DegreePlan:
    """
    Add a course to a term.

    Without a course a blank 3-credit not-taken row is added.
    """
    key = term_key(year_id, term)
    course = course.model_copy() if course else Course(credits=DEFAULT_CREDITS)
    if not course.id:
        course.id = new_course_id()

    updated = plan.model_copy(deep=True)
    updated.courses.setdefault(key, []).append(course)
    logger.debug(f"Added course '{course.name}' to {key}")
    return updated


def remove_course(plan: DegreePlan, year_id: int, term: str, course_id: str) -> DegreePlan:
    key = term_key(year_id, term)
    updated = plan.model_copy(deep=True)
    updated.courses[key] = [c for c in updated.courses.get(key, []) if c.id != course_id]
    return updated


def find_next_available_term(
    plan: DegreePlan,
    year_id: int,
    term: str,
    max_credits: Optional[int] = None,
) -> Optional[Tuple[int, str]]:
    """
    First term after (year_id, term) holding fewer than max_credits.

    Args:
        plan: Degree plan
        year_id: Year of the current term
        term: Current term name
        max_credits: Full-load threshold; defaults to MAX_TERM_CREDITS

    Returns:
        (year_id, term) or None when every later term in the plan is full
    """
    if max_credits is None:
        max_credits = config.planner.max_term_credits

    year_ids = [y.id for y in plan.years]
    if year_id not in year_ids:
        return None

    start_term = TERMS.index(term) + 1
    for year in year_ids[year_ids.index(year_id):]:
        first = start_term if year == year_id else 0
        for next_term in TERMS[first:]:
            if term_credits(plan, term_key(year, next_term)) < max_credits:
                return year, next_term
    return None


def add_retake(plan: DegreePlan, year_id: int, term: str, original: Course) -> DegreePlan:
    """Schedule a planned retake of a failed course in the given term."""
    retake = Course(
        id=new_course_id(),
        name=original.name,
        credits=original.credits,
        status=CourseStatus.PLANNED,
        ucore=list(original.ucore),
        is_retake=True,
        original_id=original.id,
    )
    logger.info(f"Retake of '{original.name}' scheduled for {term_key(year_id, term)}")
    return add_course(plan, year_id, term, retake)


def update_course(
    plan: DegreePlan,
    year_id: int,
    term: str,
    course_id: str,
    field: str,
    value: Any,
) -> DegreePlan:
    """
    Change one field of a course and apply the planner's editing rules.

    Args:
        plan: Degree plan
        year_id: Year holding the course
        term: Term holding the course
        course_id: Id of the course to change
        field: Course field name (name, credits, status, grade, ...)
        value: New value; validated by the Course model

    Returns:
        Updated plan; unchanged copy if the course isn't found

    Raises:
        ValueError: Unknown field name
        pydantic.ValidationError: Value not acceptable for the field
    """
    if field not in Course.model_fields:
        raise ValueError(f"Unknown course field '{field}'")

    key = term_key(year_id, term)
    updated = plan.model_copy(deep=True)
    retake_of: Optional[Course] = None

    for course in updated.courses.get(key, []):
        if course.id != course_id:
            continue

        was_failed = course.status == CourseStatus.FAILED
        setattr(course, field, value)

        if field == "name" and value:
            tags = extract_ucore_categories({"name": value})
            if tags:
                course.ucore = tags

        if field == "grade" and course.grade == "F" and not was_failed:
            course.status = CourseStatus.FAILED
            retake_of = course.model_copy()

        if field == "status":
            if course.status == CourseStatus.COMPLETED and not course.grade:
                course.grade = "A"
            if course.status in (CourseStatus.NOT_TAKEN, CourseStatus.PLANNED):
                course.grade = ""
        break
    else:
        logger.warning(f"Course {course_id} not found in {key}")
        return updated

    if retake_of is not None:
        slot = find_next_available_term(updated, year_id, term)
        if slot:
            updated = add_retake(updated, slot[0], slot[1], retake_of)
        else:
            logger.warning(f"No room left in the plan to retake '{retake_of.name}'")

    return updated


def populate_from_requirements(
    plan: DegreePlan,
    requirement_courses: Iterable[Union[Course, Mapping[str, Any]]],
) -> DegreePlan:
    """
    Lay out a degree's required courses across the plan.

    Five courses go into each term, Fall then Spring then Summer, then on to
    the next year. Courses that don't fit in the plan's years are dropped.
    Credits default to 3 when missing.
    """
    updated = plan.model_copy(deep=True)
    placed = 0
    dropped = 0

    for index, record in enumerate(requirement_courses or []):
        slot = index // COURSES_PER_TERM
        year_index, term_index = divmod(slot, len(TERMS))
        if year_index >= len(updated.years):
            dropped += 1
            continue

        if isinstance(record, Course):
            record = record.model_dump()
        key = term_key(updated.years[year_index].id, TERMS[term_index])
        updated.courses.setdefault(key, []).append(Course(
            id=new_course_id(),
            name=record.get("name") or "",
            credits=record.get("credits") or DEFAULT_CREDITS,
            status=CourseStatus.NOT_TAKEN,
            ucore=record.get("ucore") or [],
            is_required=True,
            note=record.get("note") or "",
        ))
        placed += 1

    logger.info(f"Populated {placed} required courses ({dropped} beyond the last year)")
    return updated


# ▸ Statistics
def plan_statistics(plan: DegreePlan, calculator: Optional[GPACalculator] = None) -> PlanStatistics:
    """Headline GPA, credit and overlap figures for a plan."""
    calculator = calculator or create_gpa_calculator()
    courses = all_courses(plan)
    completed = [c for c in courses if c.status == CourseStatus.COMPLETED]
    required = calculator.calculate_total_required_credits(plan)

    return PlanStatistics(
        gpa=calculator.calculate_gpa(completed),
        credits_earned=calculator.calculate_credits_achieved(courses),
        credits_planned=calculator.calculate_credits_planned(courses),
        credits_required=required,
        credits_remaining=calculator.calculate_remaining_credits(courses, required),
        total_credits=calculator.calculate_total_credits(courses),
        overlaps=analyze_course_overlaps(courses),
        overlap_summary=get_overlap_summary(plan, courses),
    )


class PlanHistory:
    """
    Bounded undo/redo history of plan snapshots.

    Pushing after an undo discards the redo branch. When the history is full
    the oldest snapshot is dropped.
    """

    def __init__(self, initial: DegreePlan, limit: Optional[int] = None):
        self.limit = limit or config.planner.history_limit
        self._states: List[DegreePlan] = [initial]
        self._index = 0

    @property
    def state(self) -> DegreePlan:
        return self._states[self._index]

    def push(self, plan: DegreePlan) -> DegreePlan:
        self._states = self._states[:self._index + 1]
        self._states.append(plan)
        if len(self._states) > self.limit:
            self._states = self._states[-self.limit:]
        self._index = len(self._states) - 1
        return plan

    def undo(self) -> DegreePlan:
        if self.can_undo:
            self._index -= 1
        return self.state

    def redo(self) -> DegreePlan:
        if self.can_redo:
            self._index += 1
        return self.state

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._states) - 1

    def clear(self) -> None:
        """Forget every snapshot except the current one."""
        self._states = [self.state]
        self._index = 0

    def __len__(self) -> int:
        return len(self._states)
