import pytest

from counselor.gpa import CreditPolicy, GPACalculator
from counselor.grade_scale import get_grade_scale
from counselor.models import Course, CourseStatus, DegreePlan


@pytest.fixture
def calculator():
    return GPACalculator(get_grade_scale("standard"))


def completed(grade, credits=3):
    return Course(name="CPTS 101", credits=credits, status=CourseStatus.COMPLETED, grade=grade)


def test_credit_weighted_gpa(calculator):
    courses = [completed("A", 3), completed("B", 4)]
    assert calculator.calculate_gpa(courses) == pytest.approx((4.0 * 3 + 3.0 * 4) / 7)


def test_gpa_improves_with_better_grade(calculator):
    courses = [completed("B", 3), completed("C", 4)]
    improved = [completed("B", 3), completed("B-", 4)]
    assert calculator.calculate_gpa(improved) > calculator.calculate_gpa(courses)


def test_gpa_empty_and_ineligible(calculator):
    assert calculator.calculate_gpa([]) == 0.0
    assert calculator.calculate_gpa(None) == 0.0
    not_taken = Course(name="CPTS 121", credits=4, grade="A")
    assert calculator.calculate_gpa([not_taken]) == 0.0


def test_gpa_ignores_pass_fail_and_zero_credit(calculator):
    courses = [completed("A", 3), completed("S", 3), completed("B", 0)]
    assert calculator.calculate_gpa(courses) == pytest.approx(4.0)


def test_f_counts_against_gpa(calculator):
    courses = [completed("A", 3), completed("F", 3)]
    assert calculator.calculate_gpa(courses) == pytest.approx(2.0)


def test_credit_partitions_are_exclusive(calculator):
    courses = [
        completed("A", 3),
        completed("S", 2),
        Course(name="MATH 171", credits=4, status=CourseStatus.IN_PROGRESS),
        Course(name="MATH 172", credits=4, status=CourseStatus.PLANNED),
        Course(name="PHYS 201", credits=4, status=CourseStatus.FAILED, grade="F"),
        Course(name="Elective", credits=3),
    ]
    achieved = calculator.calculate_credits_achieved(courses)
    planned = calculator.calculate_credits_planned(courses)
    assert achieved == 5
    assert planned == 8
    assert calculator.calculate_total_credits(courses) == 20
    assert achieved + planned <= calculator.calculate_total_credits(courses)


def test_cumulative_gpa(calculator):
    term = [completed("A", 3), completed("B", 3)]
    assert calculator.calculate_cumulative_gpa(3.0, 30, term) == pytest.approx(
        (3.0 * 30 + 4.0 * 3 + 3.0 * 3) / 36
    )


def test_cumulative_gpa_without_history(calculator):
    assert calculator.calculate_cumulative_gpa(None, None, []) == 0.0
    assert calculator.calculate_cumulative_gpa(None, None, [completed("B", 3)]) == pytest.approx(3.0)
    assert calculator.calculate_cumulative_gpa(3.5, 60, []) == pytest.approx(3.5)


def test_remaining_credits_never_negative(calculator):
    courses = [completed("A", 100), completed("B", 30)]
    assert calculator.calculate_remaining_credits(courses) == 0
    assert calculator.calculate_remaining_credits([completed("A", 20)], 60) == 40


def test_total_required_credits_per_program():
    calculator = GPACalculator(get_grade_scale("standard"), CreditPolicy())
    plan = DegreePlan(
        additional_majors=["Mathematics"],
        minors=["Music", "History"],
        certificates=["Cybersecurity"],
    )
    assert calculator.calculate_total_required_credits(plan) == 120 + 40 + 40 + 15
    assert calculator.calculate_total_required_credits(DegreePlan()) == 120


@pytest.mark.parametrize("scale_name", ["standard", "no_d_minus"])
def test_gpa_ordered_through_the_d_range(scale_name):
    calculator = GPACalculator(get_grade_scale(scale_name))

    def gpa_with(grade):
        return calculator.calculate_gpa([completed("A", 3), completed(grade, 3)])

    assert gpa_with("F") <= gpa_with("D-") <= gpa_with("D") <= gpa_with("D+")


def test_d_minus_counts_as_f_without_d_minus():
    calculator = GPACalculator(get_grade_scale("no_d_minus"))
    courses = [completed("A", 3), completed("D-", 3)]
    assert calculator.is_gpa_eligible(courses[1])
    assert calculator.calculate_gpa(courses) == pytest.approx(2.0)
