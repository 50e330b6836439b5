"""
Class Grade Calculator Module

Weighted-category grade math for a single class:
1. Current grade from the categories graded so far
2. Score needed on one remaining category to reach a target letter
3. Percentage to letter grade
4. Quick projection from a single earned/total pair

Ungraded categories (total_points == 0) contribute nothing to the current
grade and the result is NOT renormalised by the weight used. Weights are
expected to sum to 100; grade_summary() reports when they don't so the
caller can warn.
"""

import logging
import math
from typing import List, Optional, Sequence, Union

from .grade_scale import ThresholdLadder, get_threshold_ladder, normalize_grade
from .models import (
    CategoryGradeSummary,
    GradingCategory,
    NeededScore,
    NeededScoreError,
    RemainingWorkProjection,
)

logger = logging.getLogger(__name__)

DEFAULT_TARGET_THRESHOLD = 93.0

DEFAULT_CATEGORIES = [
    {"name": "Homework", "weight": 20},
    {"name": "Midterm", "weight": 30},
    {"name": "Final", "weight": 40},
    {"name": "Participation", "weight": 10},
]


def _round2(value: float) -> float:
    # half-up, matching the calculators' display rounding
    return math.floor(value * 100 + 0.5) / 100


def _percentage(category: GradingCategory) -> float:
    return category.earned_points / category.total_points * 100


def _is_graded(category: GradingCategory) -> bool:
    return category.total_points > 0


def default_categories() -> List[GradingCategory]:
    """Starting categories for a new class."""
    return [GradingCategory(**c) for c in DEFAULT_CATEGORIES]


def _locked_in(categories: Sequence[GradingCategory]):
    score = 0.0
    weight_used = 0.0
    for category in categories:
        if _is_graded(category):
            score += _percentage(category) * category.weight / 100
            weight_used += category.weight
    return score, weight_used


def current_grade(categories: Sequence[GradingCategory]) -> Optional[float]:
    """
    Weighted score from graded categories.

    Returns:
        Sum of percentage * weight / 100 over graded categories, or None
        when nothing has been graded yet
    """
    score, weight_used = _locked_in(categories or [])
    if weight_used == 0:
        return None
    return score


def letter_grade(percentage: float, ladder: Optional[ThresholdLadder] = None) -> str:
    """
    Letter for a percentage using the threshold ladder.

    Any real number is accepted; anything under the lowest non-F cutoff,
    including negatives, is F.
    """
    ladder = ladder or get_threshold_ladder()
    for letter, minimum in ladder.thresholds:
        if percentage >= minimum:
            return letter
    return 'F'


def grade_summary(
    categories: Sequence[GradingCategory],
    ladder: Optional[ThresholdLadder] = None,
) -> CategoryGradeSummary:
    """
    Current grade together with the weight totals.

    weight_warning is set when the declared weights don't add up to 100.
    """
    categories = categories or []
    score, weight_used = _locked_in(categories)
    total_weight = sum(c.weight for c in categories)

    grade = score if weight_used else None
    warning = not math.isclose(total_weight, 100)
    if warning:
        logger.warning(f"Category weights total {total_weight}% (should be 100%)")

    return CategoryGradeSummary(
        current_grade=grade,
        letter=letter_grade(grade, ladder) if grade is not None else None,
        weight_used=weight_used,
        total_weight=total_weight,
        weight_warning=warning,
    )


def needed_score(
    categories: Sequence[GradingCategory],
    target_grade: str,
    target_index: int,
    ladder: Optional[ThresholdLadder] = None,
) -> Union[NeededScore, NeededScoreError]:
    """
    Percentage needed on one ungraded category to reach a target grade.

    Solves (threshold - locked_in) / target_weight * 100, assuming every
    other ungraded category scores zero.

    Args:
        categories: All grading categories for the class
        target_grade: Letter to aim for
        target_index: Position of the ungraded category to solve for
        ladder: Threshold ladder preset

    Returns:
        NeededScore on success. A needed percentage above 100 is flagged
        unreachable; 0 or below is flagged already achieved. NeededScoreError
        when the target category is missing, weightless, or already graded.
    """
    ladder = ladder or get_threshold_ladder()
    categories = list(categories or [])

    if not 0 <= target_index < len(categories):
        return NeededScoreError(error="Selected category does not exist")

    target = categories[target_index]
    if _is_graded(target):
        return NeededScoreError(error="Selected category already has grades entered")
    if target.weight <= 0:
        return NeededScoreError(error="Selected category has no weight")

    letter = normalize_grade(target_grade)
    threshold = ladder.threshold_for(letter)
    if threshold is None:
        logger.warning(
            f"Target grade '{target_grade}' not on ladder '{ladder.name}', "
            f"using {DEFAULT_TARGET_THRESHOLD}%"
        )
        threshold = DEFAULT_TARGET_THRESHOLD

    locked_in, _ = _locked_in(categories)
    other_remaining = sum(
        c.weight for i, c in enumerate(categories)
        if i != target_index and not _is_graded(c)
    )

    needed = _round2((threshold - locked_in) / target.weight * 100)
    logger.debug(f"Need {needed}% on '{target.name}' for {letter or target_grade}")

    return NeededScore(
        needed_percentage=needed,
        current_grade=_round2(locked_in),
        remaining_weight=target.weight + other_remaining,
        target_grade=letter or target_grade,
        target_threshold=threshold,
        unreachable=needed > 100,
        already_achieved=needed <= 0,
    )


def points_needed(
    earned_points: float,
    total_points: float,
    target_grade: str,
    ladder: Optional[ThresholdLadder] = None,
) -> Optional[RemainingWorkProjection]:
    """
    Per-course quick projection used next to each course in the planner.

    total_points is read as the share of the course (out of 100) graded so
    far, so the rest of the course is 100 - total_points.

    Returns:
        None until there is something to project from (no points, or a
        target not on the ladder)
    """
    ladder = ladder or get_threshold_ladder("inline")
    if not total_points:
        return None

    threshold = ladder.threshold_for(normalize_grade(target_grade))
    if threshold is None:
        return None

    current = earned_points / total_points * 100
    remaining = 100 - total_points

    if remaining <= 0:
        return RemainingWorkProjection(
            current_percentage=current,
            current_letter=letter_grade(current, ladder),
            remaining_percent=0,
            needed_percentage=None,
            achievable=current >= threshold,
            already_achieved=current >= threshold,
        )

    needed = (threshold * (total_points + remaining) - earned_points * 100) / remaining
    return RemainingWorkProjection(
        current_percentage=current,
        current_letter=letter_grade(current, ladder),
        remaining_percent=remaining,
        needed_percentage=needed,
        achievable=needed <= 100,
        already_achieved=needed < 0,
    )
