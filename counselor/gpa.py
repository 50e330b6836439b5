"""
GPA Module

Credit-weighted GPA and credit aggregates for a list of courses.

Eligibility rules:
- GPA: status completed, grade on the selected scale, credits > 0
- Credits achieved: status completed, credits > 0 (S/U still earn credit)
- Credits planned: status in-progress or planned, credits > 0
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import config
from .grade_scale import GradeScale, get_grade_scale, is_gpa_grade, grade_points
from .models import Course, CourseStatus, DegreePlan

logger = logging.getLogger(__name__)

PLANNED_STATUSES = {CourseStatus.IN_PROGRESS, CourseStatus.PLANNED}


@dataclass
class CreditPolicy:
    """
    Fallback credit requirements per declared program.

    These are policy constants, not catalog data. Callers with real degree
    requirements should prefer those totals.
    """
    base_credits: int = 120
    additional_major_credits: int = 40
    minor_credits: int = 20
    certificate_credits: int = 15


class GPACalculator:
    def __init__(self, scale: GradeScale, policy: Optional[CreditPolicy] = None):
        """
        Initialize calculator with a grade scale and credit policy.

        Args:
            scale: Grade-point scale preset
            policy: Credit requirement constants
        """
        self.scale = scale
        self.policy = policy or CreditPolicy()

    def grade_to_gpa(self, grade: Optional[str]) -> float:
        return grade_points(grade, self.scale)

    def is_gpa_eligible(self, course: Course) -> bool:
        """True if the course contributes to GPA."""
        return (
            course.status == CourseStatus.COMPLETED
            and course.credits > 0
            and is_gpa_grade(course.grade, self.scale)
        )

    def _eligible(self, courses: Iterable[Course]) -> List[Course]:
        return [c for c in courses or [] if self.is_gpa_eligible(c)]

    def calculate_gpa(self, courses: Iterable[Course]) -> float:
        """
        Credit-weighted GPA over eligible courses.

        Returns 0.0 when nothing is eligible, which callers show as
        "no GPA yet".
        """
        graded = self._eligible(courses)
        if not graded:
            return 0.0

        total_points = sum(self.grade_to_gpa(c.grade) * c.credits for c in graded)
        total_credits = sum(c.credits for c in graded)
        gpa = total_points / total_credits
        logger.debug(f"GPA {gpa:.3f} over {len(graded)} courses / {total_credits} credits")
        return gpa

    def calculate_cumulative_gpa(
        self,
        prior_gpa: Optional[float],
        prior_credits: Optional[float],
        new_courses: Iterable[Course],
    ) -> float:
        """
        Cumulative GPA after adding a term to prior history.

        Prior history is treated as a single block worth
        prior_gpa * prior_credits grade points.

        Args:
            prior_gpa: GPA before this term (None treated as 0)
            prior_credits: GPA credits before this term (None treated as 0)
            new_courses: This term's courses

        Returns:
            Combined GPA, or 0.0 when there are no credits at all
        """
        prior_gpa = prior_gpa or 0.0
        prior_credits = prior_credits or 0.0

        graded = self._eligible(new_courses)
        total_points = prior_gpa * prior_credits + sum(
            self.grade_to_gpa(c.grade) * c.credits for c in graded
        )
        total_credits = prior_credits + sum(c.credits for c in graded)

        return total_points / total_credits if total_credits > 0 else 0.0

    def calculate_credits_achieved(self, courses: Iterable[Course]) -> float:
        """Credits from completed courses, whatever the grade."""
        return sum(
            c.credits for c in courses or []
            if c.status == CourseStatus.COMPLETED and c.credits > 0
        )

    def calculate_credits_planned(self, courses: Iterable[Course]) -> float:
        """Credits from in-progress and planned courses."""
        return sum(
            c.credits for c in courses or []
            if c.status in PLANNED_STATUSES and c.credits > 0
        )

    def calculate_total_credits(self, courses: Iterable[Course]) -> float:
        """Credits of every course in the list, regardless of status."""
        return sum(c.credits for c in courses or [] if c.credits > 0)

    def calculate_remaining_credits(
        self,
        courses: Iterable[Course],
        required_credits: Optional[float] = None,
    ) -> float:
        """Credits still needed to graduate; never negative."""
        if required_credits is None:
            required_credits = self.policy.base_credits
        return max(0, required_credits - self.calculate_credits_achieved(courses))

    def calculate_total_required_credits(self, plan: DegreePlan) -> int:
        """
        Fallback credit requirement for a plan.

        120 for the primary major, +40 per additional major, +20 per minor,
        +15 per certificate.
        """
        policy = self.policy
        return (
            policy.base_credits
            + policy.additional_major_credits * len(plan.additional_majors)
            + policy.minor_credits * len(plan.minors)
            + policy.certificate_credits * len(plan.certificates)
        )


def create_gpa_calculator(scale_name: Optional[str] = None) -> GPACalculator:
    """Convenience factory for GPACalculator

    Args:
        scale_name: Grade scale preset; defaults to the configured one

    Returns:
        Configured GPACalculator instance
    """
    scale = get_grade_scale(scale_name)
    return GPACalculator(
        scale,
        CreditPolicy(base_credits=config.planner.base_required_credits),
    )
