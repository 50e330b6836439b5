"""
Grade Scale Module

Letter grade to grade-point mapping on a 4.0 scale, plus the
percentage-threshold ladders used by the class grade calculators.

The planner's calculators grew apart over time: one scale carries D- (0.7),
another stops at D, and the percentage ladders disagree on where D starts
(63 vs 60). Rather than pick one, every variant is a named preset and the
caller (or configuration) selects it explicitly.

Grades outside a scale (S, U, W, I, or typos) have no grade-point value.
grade_points() returns 0 for them; use is_gpa_grade() to tell that apart
from a real F. A scale without D- still scores a D- as an F, with its
credits counted.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from .config import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeScale:
    """
    Named grade-point scale.

    Attributes:
        name (str): Preset name used in configuration
        points (Dict[str, float]): Letter grade to grade points
        description (str): Short label for display
        failing_grades (FrozenSet[str]): Letters the scale lacks but still
            scores as F (0.0 points, credits counted)
    """
    name: str
    points: Dict[str, float]
    description: str = ""
    failing_grades: FrozenSet[str] = frozenset()

    @property
    def grades(self) -> Tuple[str, ...]:
        """Grades in descending order of points."""
        return tuple(self.points)


@dataclass(frozen=True)
class ThresholdLadder:
    """
    Named letter-grade ladder of minimum percentages, highest first.

    Attributes:
        name (str): Preset name used in configuration
        thresholds (Tuple[Tuple[str, float], ...]): (letter, minimum %) pairs
    """
    name: str
    thresholds: Tuple[Tuple[str, float], ...]

    def threshold_for(self, grade: str) -> Optional[float]:
        """Minimum percentage for a letter, or None if the ladder lacks it."""
        for letter, minimum in self.thresholds:
            if letter == grade:
                return minimum
        return None


GRADE_SCALES: Dict[str, GradeScale] = {
    "standard": GradeScale(
        name="standard",
        description="WSU scale with D-",
        points={
            'A+': 4.0, 'A': 4.0, 'A-': 3.7,
            'B+': 3.3, 'B': 3.0, 'B-': 2.7,
            'C+': 2.3, 'C': 2.0, 'C-': 1.7,
            'D+': 1.3, 'D': 1.0, 'D-': 0.7,
            'F': 0.0,
        },
    ),
    "no_d_minus": GradeScale(
        name="no_d_minus",
        description="WSU scale without D-",
        failing_grades=frozenset({"D-"}),
        points={
            'A+': 4.0, 'A': 4.0, 'A-': 3.7,
            'B+': 3.3, 'B': 3.0, 'B-': 2.7,
            'C+': 2.3, 'C': 2.0, 'C-': 1.7,
            'D+': 1.3, 'D': 1.0,
            'F': 0.0,
        },
    ),
}

THRESHOLD_LADDERS: Dict[str, ThresholdLadder] = {
    # Class grade calculator: D at 63, D- at 60
    "standard": ThresholdLadder(
        name="standard",
        thresholds=(
            ('A', 93), ('A-', 90),
            ('B+', 87), ('B', 83), ('B-', 80),
            ('C+', 77), ('C', 73), ('C-', 70),
            ('D+', 67), ('D', 63), ('D-', 60),
            ('F', 0),
        ),
    ),
    # Inline per-course calculator: no D-, D at 60
    "inline": ThresholdLadder(
        name="inline",
        thresholds=(
            ('A', 93), ('A-', 90),
            ('B+', 87), ('B', 83), ('B-', 80),
            ('C+', 77), ('C', 73), ('C-', 70),
            ('D+', 67), ('D', 60),
            ('F', 0),
        ),
    ),
}

# Pass/fail and administrative marks; never part of GPA math
NON_GPA_GRADES = frozenset({'S', 'U', 'W', 'I'})

# Representative percentage for each letter (midpoint of its band)
GRADE_PERCENTAGE_MIDPOINTS: Dict[str, float] = {
    'A': 96.5, 'A-': 91.5,
    'B+': 88, 'B': 84.5, 'B-': 81.5,
    'C+': 78, 'C': 74.5, 'C-': 71.5,
    'D+': 68, 'D': 64.5, 'D-': 61.5,
    'F': 50,
}


def get_grade_scale(name: Optional[str] = None) -> GradeScale:
    """
    Look up a grade-point scale preset.

    Args:
        name: Preset name; defaults to the configured GRADE_SCALE

    Raises:
        ValueError: Unknown preset name
    """
    name = name or config.planner.grade_scale
    try:
        return GRADE_SCALES[name]
    except KeyError:
        raise ValueError(
            f"Unknown grade scale '{name}'. Choose one of: {', '.join(GRADE_SCALES)}"
        ) from None


def get_threshold_ladder(name: Optional[str] = None) -> ThresholdLadder:
    """
    Look up a percentage-threshold ladder preset.

    Args:
        name: Preset name; defaults to the configured THRESHOLD_LADDER

    Raises:
        ValueError: Unknown preset name
    """
    name = name or config.planner.threshold_ladder
    try:
        return THRESHOLD_LADDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown threshold ladder '{name}'. Choose one of: {', '.join(THRESHOLD_LADDERS)}"
        ) from None


def normalize_grade(grade: Optional[str]) -> str:
    return (grade or "").strip().upper()


def is_gpa_grade(grade: Optional[str], scale: Optional[GradeScale] = None) -> bool:
    """True if the grade carries grade points on the given scale."""
    scale = scale or get_grade_scale()
    letter = normalize_grade(grade)
    return letter in scale.points or letter in scale.failing_grades


def grade_points(grade: Optional[str], scale: Optional[GradeScale] = None) -> float:
    """
    Grade points for a letter grade.

    Unknown and non-GPA grades return 0.0; callers that need to tell these
    apart from F should check is_gpa_grade() first.
    """
    scale = scale or get_grade_scale()
    letter = normalize_grade(grade)
    if letter not in scale.points:
        if letter and letter not in NON_GPA_GRADES and letter not in scale.failing_grades:
            logger.debug(f"Grade '{letter}' not on scale '{scale.name}', using 0.0")
        return 0.0
    return scale.points[letter]


def grade_to_percentage(grade: Optional[str]) -> float:
    """Midpoint percentage for a letter grade; 0 for unknown grades."""
    return GRADE_PERCENTAGE_MIDPOINTS.get(normalize_grade(grade), 0)
