import pytest

from counselor.category_grades import (
    current_grade,
    default_categories,
    grade_summary,
    letter_grade,
    needed_score,
    points_needed,
)
from counselor.grade_scale import get_threshold_ladder
from counselor.models import GradingCategory, NeededScore, NeededScoreError


@pytest.fixture
def standard():
    return get_threshold_ladder("standard")


def test_current_grade_is_not_renormalised(syllabus):
    assert current_grade(syllabus) == pytest.approx(27)


def test_current_grade_without_graded_categories():
    assert current_grade([]) is None
    assert current_grade(default_categories()) is None


def test_grade_summary_reports_weight_used(syllabus, standard):
    summary = grade_summary(syllabus, standard)
    assert summary.current_grade == pytest.approx(27)
    assert summary.weight_used == 30
    assert summary.total_weight == 100
    assert not summary.weight_warning
    assert summary.letter == "F"


def test_grade_summary_warns_on_bad_weights(standard):
    categories = [
        GradingCategory(name="Homework", weight=50, earned_points=10, total_points=10),
        GradingCategory(name="Final", weight=40),
    ]
    summary = grade_summary(categories, standard)
    assert summary.weight_warning
    assert summary.total_weight == 90


def test_needed_score_unreachable(syllabus, standard):
    result = needed_score(syllabus, "B", 2, standard)
    assert isinstance(result, NeededScore)
    assert result.needed_percentage == pytest.approx(140)
    assert result.current_grade == pytest.approx(27)
    assert result.remaining_weight == 70
    assert result.target_threshold == 83
    assert result.unreachable
    assert not result.already_achieved


def test_needed_score_reachable(standard):
    categories = [
        GradingCategory(name="Homework", weight=60, earned_points=95, total_points=100),
        GradingCategory(name="Final", weight=40),
    ]
    result = needed_score(categories, "A", 1, standard)
    assert result.needed_percentage == pytest.approx(90)
    assert not result.unreachable


def test_needed_score_already_achieved(standard):
    categories = [
        GradingCategory(name="Homework", weight=90, earned_points=100, total_points=100),
        GradingCategory(name="Participation", weight=10),
    ]
    result = needed_score(categories, "A-", 1, standard)
    assert result.needed_percentage == 0
    assert result.already_achieved


def test_needed_score_rounds_to_two_places(standard):
    categories = [
        GradingCategory(name="Homework", weight=40, earned_points=2, total_points=3),
        GradingCategory(name="Final", weight=60),
    ]
    result = needed_score(categories, "B", 1, standard)
    assert result.needed_percentage == pytest.approx(93.89)
    assert result.current_grade == pytest.approx(26.67)


def test_needed_score_errors(syllabus, standard):
    assert needed_score(syllabus, "A", 0, standard) == NeededScoreError(
        error="Selected category already has grades entered"
    )
    assert needed_score(syllabus, "A", 9, standard).error == "Selected category does not exist"
    assert needed_score(syllabus, "A", -1, standard).error == "Selected category does not exist"

    weightless = syllabus + [GradingCategory(name="Extra credit", weight=0)]
    assert needed_score(weightless, "A", 4, standard).error == "Selected category has no weight"


def test_needed_score_unknown_target_uses_a(syllabus, standard):
    unknown = needed_score(syllabus, "A+", 2, standard)
    known = needed_score(syllabus, "A", 2, standard)
    assert unknown.target_threshold == 93
    assert unknown.needed_percentage == known.needed_percentage


def test_letter_grade(standard):
    assert letter_grade(100, standard) == "A"
    assert letter_grade(93, standard) == "A"
    assert letter_grade(92.99, standard) == "A-"
    assert letter_grade(61, standard) == "D-"
    assert letter_grade(59.9, standard) == "F"
    assert letter_grade(-5, standard) == "F"
    assert letter_grade(61, get_threshold_ladder("inline")) == "D"


def test_points_needed_projection():
    projection = points_needed(45, 50, "A")
    assert projection.current_percentage == pytest.approx(90)
    assert projection.current_letter == "A-"
    assert projection.remaining_percent == 50
    assert projection.needed_percentage == pytest.approx(96)
    assert projection.achievable
    assert not projection.already_achieved


def test_points_needed_nothing_left():
    projection = points_needed(95, 100, "A")
    assert projection.needed_percentage is None
    assert projection.remaining_percent == 0
    assert projection.achievable
    assert projection.already_achieved

    assert not points_needed(80, 100, "A").achievable


def test_points_needed_without_data():
    assert points_needed(0, 0, "A") is None
    assert points_needed(10, 20, "D-") is None
