"""
Requirement Classifier Module

Reads catalog course names and footnote text and turns them into structured
requirement descriptors:
1. UCORE category tags on a course (bracketed in the name or explicit)
2. Course codes and level ranges named in footnote text
3. Elective requirement kinds (UCORE, CS, Technical, General, course list)
4. Catalog search filters for filling an elective slot
5. Which required UCORE categories a plan already covers

Everything here is a best-effort keyword heuristic. Descriptors keep the text
they came from so a wrong guess can be spotted and overridden.
"""

import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .models import (
    AllowedCourse,
    Course,
    ElectiveFilter,
    FilterKind,
    LevelRange,
    Requirement,
    RequirementType,
    UcoreSatisfaction,
)

logger = logging.getLogger(__name__)

UCORE_CATEGORIES = ('WRTG', 'QUAN', 'BSCI', 'PSCI', 'HUM', 'ARTS', 'CAPS', 'DIVR', 'ROOT', 'COMM')

UCORE_CATEGORY_NAMES = {
    'WRTG': 'Written Communication',
    'QUAN': 'Quantitative Reasoning',
    'BSCI': 'Biological Sciences',
    'PSCI': 'Physical Sciences',
    'HUM': 'Humanities',
    'ARTS': 'Arts',
    'CAPS': 'Capstone',
    'DIVR': 'Diversity',
    'ROOT': 'Roots of Contemporary Issues',
    'COMM': 'Communication',
}

CS_PREFIXES = ['CPT S', 'CPTS']

PLACEHOLDER_KEYWORDS = (
    'elective', 'ucore', 'requirement', 'tbd', 'to be determined',
    'option', 'choose', 'select', 'any', 'general',
)

# "CPTS 121", "MATH171"
COURSE_CODE_PATTERN = re.compile(r'^([A-Z]{2,5})\s*(\d{3})', re.IGNORECASE)

UCORE_TAG_PATTERN = re.compile(r'\[([A-Z]{3,5})\]', re.IGNORECASE)

# Catalog prefixes are one or two short tokens ("CPT S", "E E", "MATH").
# The joining words between numbers ("and", "or", ", and") may be any case.
_PREFIX = r'[A-Z]{1,4}(?:\s+[A-Z]{1,4})?'
_NUMBER = r'\d{3}[A-Z]?\b'
_SEPARATOR = r'(?:\s*,?\s*(?i:and|or)\s+|\s*,\s*)'
_NUMBER_LIST = rf'\b({_PREFIX})\s+({_NUMBER}(?:{_SEPARATOR}{_NUMBER})*)'
_LEVEL_RANGE = rf'(\d{{3}})-(\d{{3}})-(?i:level)\s+({_PREFIX})\b'

NUMBER_PATTERN = re.compile(_NUMBER, re.IGNORECASE)
NUMBER_LIST_PATTERN = re.compile(_NUMBER_LIST, re.IGNORECASE)
LEVEL_RANGE_PATTERN = re.compile(_LEVEL_RANGE, re.IGNORECASE)
# Exact-case variants only accept upper-case prefixes
EXACT_NUMBER_LIST_PATTERN = re.compile(_NUMBER_LIST)
EXACT_LEVEL_RANGE_PATTERN = re.compile(_LEVEL_RANGE)

# Lower-case words that can sit in front of a course number but are never
# part of a prefix ("take MATH 171", "or Math 315")
PROSE_WORDS = frozenset({
    'a', 'an', 'and', 'or', 'of', 'the', 'from', 'in', 'at', 'any', 'one',
    'two', 'take', 'with', 'for', 'to', 'also', 'see', 'both', 'each',
    'plus', 'is', 'are', 'as', 'by', 'on', 'be', 'all', 'but', 'not',
    'only', 'then', 'than',
})

UCORE_ELECTIVE_PATTERN = re.compile(r'UCORE\s*\[?([A-Z]{3,5})\]?\s*elective', re.IGNORECASE)

CourseLike = Union[Course, Mapping[str, Any]]


def _field(course: CourseLike, name: str, default=None):
    if isinstance(course, Mapping):
        return course.get(name, default)
    return getattr(course, name, default)


def is_actual_course(name: Optional[str]) -> bool:
    """True for concrete course names like "CPTS 121" (not "UCORE Inquiry")."""
    if not name or not isinstance(name, str):
        return False
    return COURSE_CODE_PATTERN.match(name.strip()) is not None


def parse_course_name(name: Optional[str]) -> Tuple[str, str]:
    """
    Split a course name into (prefix, number).

    Returns ('', '') for placeholders and empty names.
    """
    if not name:
        return '', ''
    match = COURSE_CODE_PATTERN.match(name)
    if not match:
        return '', ''
    return match.group(1).upper(), match.group(2)


def is_placeholder(name: Optional[str]) -> bool:
    """True for slot names like "Technical Elective" that aren't real courses."""
    if not name:
        return False
    lower = name.lower()
    return any(k in lower for k in PLACEHOLDER_KEYWORDS) and not is_actual_course(name)


def extract_ucore_categories(course: CourseLike) -> List[str]:
    """
    UCORE tags for a course.

    Bracketed tags in the name come first, then the explicit ucore field
    (list or comma-delimited string). Tags are upper-cased and checked
    against UCORE_CATEGORIES; anything else is ignored.

    Args:
        course: Course model or plain record with name/ucore keys

    Returns:
        Tags in first-seen order without duplicates
    """
    categories: List[str] = []

    def add(tag: str):
        tag = tag.strip().upper()
        if tag in UCORE_CATEGORIES and tag not in categories:
            categories.append(tag)

    name = _field(course, 'name') or ''
    if isinstance(name, str):
        for tag in UCORE_TAG_PATTERN.findall(name):
            add(tag)

    explicit = _field(course, 'ucore')
    if explicit:
        if isinstance(explicit, str):
            explicit = explicit.split(',')
        for tag in explicit:
            if isinstance(tag, str):
                add(tag)

    return categories


def _clean_prefix(raw: str) -> str:
    """Upper-cased prefix with surrounding prose words ("or", "take") dropped."""
    tokens = raw.split()
    while tokens and tokens[0].lower() in PROSE_WORDS and not tokens[0].isupper():
        tokens.pop(0)
    while tokens and tokens[-1].lower() in PROSE_WORDS and not tokens[-1].isupper():
        tokens.pop()
    return ' '.join(tokens).upper()


def extract_allowed_courses_from_text(
    text: Optional[str],
    case_sensitive: bool = False,
) -> List[AllowedCourse]:
    """
    Course codes named in catalog text.

    Two passes:
    - Enumerated: "CPT S 321, 323, or 422" gives one entry per number,
      de-duplicated by code.
    - Level range: "300-400-level CPT S" gives one range entry. Range
      entries are never merged with enumerated ones.

    Args:
        text: Footnote or requirement text
        case_sensitive: Only accept prefixes written in upper case

    Returns:
        Enumerated entries in text order followed by range entries
    """
    if not text:
        return []

    number_list = EXACT_NUMBER_LIST_PATTERN if case_sensitive else NUMBER_LIST_PATTERN
    level_range = EXACT_LEVEL_RANGE_PATTERN if case_sensitive else LEVEL_RANGE_PATTERN

    courses: List[AllowedCourse] = []
    seen = set()

    for match in number_list.finditer(text):
        prefix = _clean_prefix(match.group(1))
        if not prefix:
            continue
        for number in NUMBER_PATTERN.findall(match.group(2)):
            number = number.upper()
            code = f"{prefix} {number}"
            if code in seen:
                continue
            seen.add(code)
            courses.append(AllowedCourse(prefix=prefix, number=number, code=code))

    for match in level_range.finditer(text):
        low, high = int(match.group(1)), int(match.group(2))
        prefix = _clean_prefix(match.group(3))
        if not prefix:
            continue
        courses.append(AllowedCourse(
            prefix=prefix,
            level_range=LevelRange(min=low, max=high),
            code=f"{prefix} {low}-{high} level",
        ))

    logger.debug(f"Extracted {len(courses)} allowed courses from '{text[:60]}'")
    return courses


def parse_elective_requirements(
    text: Optional[str],
    case_sensitive: bool = False,
) -> List[Requirement]:
    """
    Detect elective requirements described in catalog text.

    Each kind is checked on its own, so one footnote can yield several
    descriptors. Output order is UCORE, CS, Technical, General; a CourseList
    descriptor is produced only when none of those matched but the text
    still names courses.
    """
    if not text:
        return []

    requirements: List[Requirement] = []
    lower = text.lower()

    ucore_match = UCORE_ELECTIVE_PATTERN.search(text)
    if ucore_match:
        tag = ucore_match.group(1).upper()
        requirements.append(Requirement(
            type=RequirementType.UCORE,
            category=tag,
            description=f"UCORE {tag} Elective: Choose a {tag}-designated course",
            source_text=text,
        ))

    if any(k in lower for k in ('cs elective', 'computer science elective', 'cpt s', 'cpts')):
        requirements.append(Requirement(
            type=RequirementType.CS,
            allowed_courses=extract_allowed_courses_from_text(text, case_sensitive),
            description="CS Elective: Choose a Computer Science course (CPTS prefix)",
            source_text=text,
        ))

    if 'technical elective' in lower:
        requirements.append(Requirement(
            type=RequirementType.TECHNICAL,
            allowed_courses=extract_allowed_courses_from_text(text, case_sensitive),
            description="Technical Elective: Choose an approved technical course",
            source_text=text,
        ))

    if 'general elective' in lower or 'free elective' in lower:
        requirements.append(Requirement(
            type=RequirementType.GENERAL,
            description="General Elective: Choose any course",
            source_text=text,
        ))

    if not requirements:
        allowed = extract_allowed_courses_from_text(text, case_sensitive)
        if allowed:
            requirements.append(Requirement(
                type=RequirementType.COURSE_LIST,
                allowed_courses=allowed,
                description="Choose from the listed courses",
                source_text=text,
            ))

    logger.debug(f"Detected requirements {[r.type.value for r in requirements]}")
    return requirements


def plan_course_codes(plan_courses: Optional[Iterable[CourseLike]]) -> List[str]:
    """Normalised "PREFIX NUMBER" codes for the concrete courses in a plan."""
    codes: List[str] = []
    for course in plan_courses or []:
        if course is None:
            continue
        name = _field(course, 'name')
        if not isinstance(name, str):
            continue
        prefix, number = parse_course_name(name)
        if prefix:
            code = f"{prefix} {number}"
            if code not in codes:
                codes.append(code)
    return codes


def build_elective_filter(
    requirement: Optional[Requirement],
    plan_courses: Optional[Iterable[CourseLike]] = None,
) -> ElectiveFilter:
    """
    Catalog search filter for one elective requirement.

    Explicit allowed courses always win. Otherwise the requirement type
    decides: UCORE scopes by category, CS by prefix, Technical is left to the
    caller to expand, General is unscoped. Courses already in the plan are
    always excluded.

    Args:
        requirement: Descriptor from parse_elective_requirements(), or None
        plan_courses: Courses currently in the plan

    Returns:
        ElectiveFilter; with no requirement only exclude_codes is set
    """
    exclude = plan_course_codes(plan_courses)

    if requirement is None:
        return ElectiveFilter(exclude_codes=exclude)

    if requirement.allowed_courses:
        return ElectiveFilter(
            kind=FilterKind.COURSELIST,
            allowed_courses=requirement.allowed_courses,
            exclude_codes=exclude,
        )

    if requirement.type == RequirementType.UCORE:
        return ElectiveFilter(
            kind=FilterKind.UCORE,
            ucore_category=requirement.category,
            exclude_codes=exclude,
        )
    if requirement.type == RequirementType.CS:
        return ElectiveFilter(
            kind=FilterKind.PREFIX,
            prefixes=list(CS_PREFIXES),
            exclude_codes=exclude,
        )
    if requirement.type == RequirementType.TECHNICAL:
        return ElectiveFilter(kind=FilterKind.TECHNICAL, exclude_codes=exclude)
    if requirement.type == RequirementType.COURSE_LIST:
        return ElectiveFilter(kind=FilterKind.COURSELIST, exclude_codes=exclude)

    return ElectiveFilter(kind=FilterKind.GENERAL, exclude_codes=exclude)


def compute_ucore_satisfaction(
    required: Optional[Sequence[str]],
    plan_courses: Optional[Iterable[Course]],
) -> UcoreSatisfaction:
    """
    Which required UCORE categories the plan's courses cover.

    Args:
        required: Required category tags, any case
        plan_courses: Planned and completed courses

    Returns:
        UcoreSatisfaction with satisfied/remaining lists in required order
        and the covering courses per category
    """
    tags: List[str] = []
    for tag in required or []:
        tag = tag.upper()
        if tag not in tags:
            tags.append(tag)

    satisfied_map = {tag: [] for tag in tags}
    for course in plan_courses or []:
        if course is None:
            continue
        for tag in extract_ucore_categories(course):
            if tag in satisfied_map:
                satisfied_map[tag].append(course)

    satisfied = [tag for tag in tags if satisfied_map[tag]]
    remaining = [tag for tag in tags if not satisfied_map[tag]]

    return UcoreSatisfaction(
        required=tags,
        satisfied=satisfied,
        remaining=remaining,
        satisfied_map=satisfied_map,
    )
