import pandas as pd

from counselor.display import (
    apply_term_edits,
    categories_from_rows,
    category_rows,
    courses_dataframe,
    generate_plan_pdf,
    term_dataframe,
    validate_course,
)
from counselor.models import Course, CourseStatus, GradingCategory
from counselor.planner import plan_statistics


def test_validate_course():
    assert validate_course(Course(name="CPTS 121", credits=4)) == "✓"
    assert validate_course(Course()) == "Missing name, Missing credits"
    assert validate_course(Course(name="X", credits=15)) == "Unusual credits"
    assert validate_course(Course(name="X", credits=3, grade="Z")) == "Non-standard grade"
    assert validate_course(Course(name="X", credits=3, status="completed")) == "Missing grade"
    assert validate_course(Course(name="X", credits=3, status="completed", grade="S")) == "✓"


def test_courses_dataframe(sample_plan):
    df = courses_dataframe(sample_plan)
    assert len(df) == 4
    assert list(df["term"]) == ["Fall", "Fall", "Spring", "Spring"]
    assert df.iloc[0]["status"] == "completed"
    assert set(df["notes"]) == {"✓"}


def test_courses_dataframe_empty(empty_plan):
    df = courses_dataframe(empty_plan)
    assert df.empty
    assert "notes" in df.columns


def test_term_edits_route_through_editing_rules(sample_plan):
    edited = term_dataframe(sample_plan.courses["1-Spring"])
    edited.loc[0, "grade"] = "F"
    edited.loc[0, "status"] = "completed"

    plan = apply_term_edits(sample_plan, 1, "Spring", edited)
    assert plan.courses["1-Spring"][0].status == CourseStatus.FAILED
    assert plan.courses["1-Summer"][0].is_retake
    assert sample_plan.courses["1-Summer"] == []


def test_term_edits_add_and_remove_rows(sample_plan):
    edited = term_dataframe(sample_plan.courses["1-Fall"]).iloc[1:]
    new_row = pd.DataFrame([{"id": None, "name": "MATH 171", "credits": None, "status": None, "grade": None}])
    edited = pd.concat([edited, new_row], ignore_index=True)

    plan = apply_term_edits(sample_plan, 1, "Fall", edited)
    assert [c.name for c in plan.courses["1-Fall"]] == ["ENGLISH 101 [WRTG]", "MATH 171"]
    added = plan.courses["1-Fall"][1]
    assert added.credits == 3
    assert added.status == CourseStatus.NOT_TAKEN
    assert added.id


def test_unchanged_grid_keeps_plan(sample_plan):
    edited = term_dataframe(sample_plan.courses["1-Fall"])
    assert apply_term_edits(sample_plan, 1, "Fall", edited) is sample_plan


def test_category_rows_round_trip():
    categories = [
        GradingCategory(name="Homework", weight=20, earned_points=18, total_points=20),
        GradingCategory(name="Final", weight=80),
    ]
    assert categories_from_rows(category_rows(categories)) == categories


def test_categories_from_rows_blank_cells():
    [category] = categories_from_rows([
        {"name": None, "weight": float("nan"), "earned_points": None, "total_points": float("nan")},
    ])
    assert category == GradingCategory()


def test_generate_plan_pdf(sample_plan, empty_plan):
    pdf = generate_plan_pdf(sample_plan, plan_statistics(sample_plan))
    assert pdf.startswith(b"%PDF")
    assert generate_plan_pdf(empty_plan, plan_statistics(empty_plan)).startswith(b"%PDF")
