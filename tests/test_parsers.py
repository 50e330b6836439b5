import json

import pytest
from pydantic import ValidationError

from counselor.models import CourseStatus
from counselor.parsers import (
    parse_course,
    parse_courses,
    parse_degree_plan,
    plan_to_dict,
)


def test_parse_ui_record():
    course = parse_course({
        "id": 17,
        "name": " CPTS 121 ",
        "credits": "4 cr",
        "status": "In Progress",
        "grade": " a- ",
        "ucore": "QUAN",
        "isRequired": "Yes",
        "isRetake": False,
        "originalId": "",
    })
    assert course.id == "17"
    assert course.name == "CPTS 121"
    assert course.credits == 4.0
    assert course.status == CourseStatus.IN_PROGRESS
    assert course.grade == "A-"
    assert course.ucore == ["QUAN"]
    assert course.is_required
    assert not course.is_retake
    assert course.original_id is None


def test_parse_snake_case_and_defaults():
    course = parse_course({"name": "MATH 171", "is_required": True, "credits": None})
    assert course.credits == 0.0
    assert course.status == CourseStatus.NOT_TAKEN
    assert course.grade == ""
    assert course.is_required


def test_parse_bad_values_are_coerced():
    course = parse_course({"name": "X", "credits": -3, "status": "dropped", "grade": None})
    assert course.credits == 0.0
    assert course.status == CourseStatus.NOT_TAKEN
    assert parse_course({"credits": "3 cr"}).credits == 3.0
    assert parse_course({"credits": "abc"}).credits == 0.0


def test_parse_spreadsheet_columns():
    course = parse_course({"Course": "ENGLISH 101", "Credits": 3, "Status": "completed", "Grade": "B", "Retake": "Yes"})
    assert course.name == "ENGLISH 101"
    assert course.status == CourseStatus.COMPLETED
    assert course.is_retake


def test_parse_courses_skips_empty_rows():
    courses = parse_courses([{"name": "CPTS 121"}, {}, None, {"name": "CPTS 122"}])
    assert [c.name for c in courses] == ["CPTS 121", "CPTS 122"]
    assert parse_courses(None) == []


def test_parse_saved_plan():
    saved = {
        "selectedDegree": {"name": "Computer Science", "id": 3},
        "years": [{"id": 1, "name": "2024-2025"}, {"name": "no id"}],
        "courses": {"1-Fall": [{"name": "CPTS 121", "credits": 4}], "1-Spring": []},
        "additionalMajors": ["Mathematics", {"title": "Data Analytics"}, ""],
        "minors": ["Music"],
    }
    plan = parse_degree_plan(json.dumps(saved))
    assert plan.primary_major == "Computer Science"
    assert [y.name for y in plan.years] == ["2024-2025"]
    assert plan.courses["1-Fall"][0].credits == 4.0
    assert plan.courses["1-Spring"] == []
    assert plan.additional_majors == ["Mathematics", "Data Analytics"]
    assert plan.minors == ["Music"]
    assert plan.certificates == []


def test_plan_round_trip(sample_plan):
    sample_plan.additional_majors.append("Mathematics")
    data = plan_to_dict(sample_plan)
    assert data["courses"]["1-Fall"][0]["isRequired"] is False
    assert parse_degree_plan(json.loads(json.dumps(data))).model_dump() == sample_plan.model_dump()


def test_invalid_json_raises():
    with pytest.raises(json.JSONDecodeError):
        parse_degree_plan("{not json")


def test_invalid_year_id_raises():
    with pytest.raises((ValidationError, ValueError)):
        parse_degree_plan({"years": [{"id": "first", "name": "2024-2025"}]})
