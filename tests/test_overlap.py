from counselor.models import Course, DegreePlan
from counselor.overlap import (
    CHOICE_SENTENCE,
    ELECTIVE_SENTENCE,
    FALLBACK_SENTENCE,
    analyze_course_overlaps,
    get_overlap_summary,
)

COURSES = [
    Course(name="HISTORY 105 [ROOT]"),
    Course(name="Technical Elective"),
    Course(name="MATH 216 or MATH 220"),
    Course(name="CPTS 121", ucore=["QUAN"]),
    Course(name="CPTS 122"),
]


def test_partitions_are_independent():
    overlaps = analyze_course_overlaps(COURSES + [Course(name="UCORE [HUM] Elective")])
    assert [c.name for c in overlaps.ucore_courses] == [
        "HISTORY 105 [ROOT]", "CPTS 121", "UCORE [HUM] Elective",
    ]
    assert [c.name for c in overlaps.major_electives] == ["Technical Elective", "UCORE [HUM] Elective"]
    assert [c.name for c in overlaps.potential_cross_listed] == ["MATH 216 or MATH 220"]


def test_exact_case_matching():
    overlaps = analyze_course_overlaps(
        [Course(name="Technical Elective"), Course(name="MATH 216 OR 220")],
        case_sensitive=True,
    )
    assert overlaps.major_electives == []
    assert overlaps.potential_cross_listed == []


def test_empty_input():
    overlaps = analyze_course_overlaps(None)
    assert overlaps.ucore_courses == []
    assert overlaps.major_electives == []
    assert overlaps.potential_cross_listed == []


def test_no_summary_without_additional_majors():
    plan = DegreePlan(primary_major="Computer Science", minors=["Mathematics"])
    assert get_overlap_summary(plan, COURSES) is None
    assert get_overlap_summary(DegreePlan(), []) is None


def test_summary_sentences():
    plan = DegreePlan(additional_majors=["Mathematics"])
    summary = get_overlap_summary(plan, COURSES)
    assert summary.startswith("You have 2 UCORE courses")
    assert ELECTIVE_SENTENCE in summary
    assert summary.endswith(CHOICE_SENTENCE)


def test_summary_fallback():
    plan = DegreePlan(additional_majors=["Mathematics"])
    assert get_overlap_summary(plan, [Course(name="CPTS 122")]) == FALLBACK_SENTENCE
