"""
Overlap Analyzer Module

Looks for courses that could count toward more than one program when a
student has declared additional majors.
"""

import logging
from typing import Iterable, Optional

from .models import Course, DegreePlan, OverlapAnalysis
from .requirements import extract_ucore_categories

logger = logging.getLogger(__name__)

UCORE_SENTENCE = (
    "You have {count} UCORE courses that can count toward both general "
    "education and major requirements. "
)
ELECTIVE_SENTENCE = "Consider using electives to double-count for multiple majors. "
CHOICE_SENTENCE = (
    "Review courses with multiple options to ensure they satisfy "
    "requirements for all your programs."
)
FALLBACK_SENTENCE = "Plan strategically to maximize course overlaps between your programs."


def analyze_course_overlaps(
    courses: Iterable[Course],
    case_sensitive: bool = False,
) -> OverlapAnalysis:
    """
    Partition courses by how they might cross-count.

    The partitions are independent; one course can land in several.
    - ucore_courses: any UCORE tag, explicit or bracketed in the name
    - major_electives: name contains "elective"
    - potential_cross_listed: name contains " or " (a choice between courses)

    Args:
        courses: Courses to scan
        case_sensitive: Match the name keywords exactly as written
    """
    analysis = OverlapAnalysis()

    for course in courses or []:
        if course is None:
            continue
        name = course.name or ""
        haystack = name if case_sensitive else name.lower()

        if extract_ucore_categories(course):
            analysis.ucore_courses.append(course)
        if "elective" in haystack:
            analysis.major_electives.append(course)
        if " or " in haystack:
            analysis.potential_cross_listed.append(course)

    return analysis


def get_overlap_summary(
    plan: DegreePlan,
    courses: Iterable[Course],
    case_sensitive: bool = False,
) -> Optional[str]:
    """
    Advice on double-counting courses across majors.

    Returns:
        None unless the plan has additional majors (minors and certificates
        don't count); otherwise one sentence per non-empty partition, or a
        generic sentence when none apply
    """
    if not plan.additional_majors:
        return None

    overlaps = analyze_course_overlaps(courses, case_sensitive=case_sensitive)
    summary = ""
    if overlaps.ucore_courses:
        summary += UCORE_SENTENCE.format(count=len(overlaps.ucore_courses))
    if overlaps.major_electives:
        summary += ELECTIVE_SENTENCE
    if overlaps.potential_cross_listed:
        summary += CHOICE_SENTENCE

    logger.debug(
        f"Overlaps: {len(overlaps.ucore_courses)} UCORE, "
        f"{len(overlaps.major_electives)} electives, "
        f"{len(overlaps.potential_cross_listed)} choices"
    )
    return summary or FALLBACK_SENTENCE
