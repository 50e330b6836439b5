import pytest

from counselor.grade_scale import (
    GRADE_SCALES,
    get_grade_scale,
    get_threshold_ladder,
    grade_points,
    grade_to_percentage,
    is_gpa_grade,
)


def test_standard_scale_points():
    scale = get_grade_scale("standard")
    assert grade_points("A+", scale) == 4.0
    assert grade_points("A-", scale) == 3.7
    assert grade_points("D-", scale) == 0.7
    assert grade_points("F", scale) == 0.0


def test_no_d_minus_scale_scores_d_minus_as_f():
    scale = get_grade_scale("no_d_minus")
    assert "D-" not in scale.grades
    assert is_gpa_grade("d-", scale)
    assert grade_points("D-", scale) == 0.0


def test_grades_are_normalised():
    scale = GRADE_SCALES["standard"]
    assert grade_points(" b+ ", scale) == 3.3
    assert is_gpa_grade("c", scale)


def test_non_gpa_grades_have_no_points():
    scale = get_grade_scale("standard")
    for grade in ("S", "U", "W", "I", "", None, "Z"):
        assert not is_gpa_grade(grade, scale)
        assert grade_points(grade, scale) == 0.0


def test_f_is_a_gpa_grade():
    assert is_gpa_grade("F", get_grade_scale("standard"))


def test_unknown_scale_raises():
    with pytest.raises(ValueError, match="Unknown grade scale"):
        get_grade_scale("quarter")


def test_unknown_ladder_raises():
    with pytest.raises(ValueError, match="Unknown threshold ladder"):
        get_threshold_ladder("curve")


def test_ladders_disagree_on_d():
    assert get_threshold_ladder("standard").threshold_for("D") == 63
    assert get_threshold_ladder("inline").threshold_for("D") == 60
    assert get_threshold_ladder("inline").threshold_for("D-") is None


def test_grade_to_percentage_midpoints():
    assert grade_to_percentage("A") == 96.5
    assert grade_to_percentage("f") == 50
    assert grade_to_percentage("S") == 0
