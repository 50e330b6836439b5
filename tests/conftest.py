import pytest

from counselor.models import Course, CourseStatus, GradingCategory
from counselor.planner import add_course, new_plan


@pytest.fixture
def empty_plan():
    return new_plan()


@pytest.fixture
def sample_plan(empty_plan):
    plan = add_course(empty_plan, 1, "Fall", Course(
        name="CPTS 121 Program Design [QUAN]",
        credits=4,
        status=CourseStatus.COMPLETED,
        grade="A",
    ))
    plan = add_course(plan, 1, "Fall", Course(
        name="ENGLISH 101 [WRTG]",
        credits=3,
        status=CourseStatus.COMPLETED,
        grade="B",
    ))
    plan = add_course(plan, 1, "Spring", Course(
        name="CPTS 122",
        credits=4,
        status=CourseStatus.PLANNED,
    ))
    plan = add_course(plan, 1, "Spring", Course(
        name="Technical Elective",
        credits=3,
    ))
    return plan


@pytest.fixture
def syllabus():
    """Homework and participation graded; midterm and final still open."""
    return [
        GradingCategory(name="Homework", weight=20, earned_points=18, total_points=20),
        GradingCategory(name="Midterm", weight=30),
        GradingCategory(name="Final", weight=40),
        GradingCategory(name="Participation", weight=10, earned_points=9, total_points=10),
    ]
