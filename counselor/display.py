"""
Display Module

This module handles the presentation of the degree planner through:
1. Interactive Streamlit UI components
2. PDF plan report generation
3. Course data validation feedback

The module provides:
- Plan statistics display
- Per-term course grids with inline editing
- Overlap advice for multi-major plans
- GPA and class grade calculator widgets
- PDF report generation
"""

import logging
from io import BytesIO
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .category_grades import grade_summary, needed_score
from .grade_scale import GRADE_SCALES, NON_GPA_GRADES, GradeScale, ThresholdLadder
from .models import Course, CourseStatus, DegreePlan, GradingCategory, NeededScoreError, PlanStatistics
from .planner import TERMS, add_course, remove_course, term_credits, term_key, update_course

logger = logging.getLogger(__name__)

STATUS_OPTIONS = [s.value for s in CourseStatus]
GRADE_OPTIONS = [""] + list(GRADE_SCALES["standard"].grades) + sorted(NON_GPA_GRADES)
EDITABLE_FIELDS = ["name", "credits", "status", "grade"]
MAX_USUAL_CREDITS = 12

WSU_CRIMSON = colors.HexColor("#981E32")


def validate_course(course: Course) -> str:
    """Validate course data and return any issues"""
    notes = []

    # Check required fields
    if not course.name: notes.append("Missing name")
    if not course.credits: notes.append("Missing credits")

    # Check data quality
    if course.credits > MAX_USUAL_CREDITS:
        notes.append("Unusual credits")

    if course.grade and course.grade not in GRADE_OPTIONS:
        notes.append("Non-standard grade")
    if course.status == CourseStatus.COMPLETED and not course.grade:
        notes.append("Missing grade")

    return ", ".join(notes) if notes else "✓"


def courses_dataframe(plan: DegreePlan) -> pd.DataFrame:
    """
    Flatten a plan into one row per course.

    Columns: year, term, id, name, credits, status, grade, ucore,
    is_required, is_retake, notes
    """
    rows = []
    for year in plan.years:
        for term in TERMS:
            for course in plan.courses.get(term_key(year.id, term), []):
                rows.append({
                    "year": year.name,
                    "term": term,
                    "id": course.id,
                    "name": course.name,
                    "credits": course.credits,
                    "status": course.status.value,
                    "grade": course.grade,
                    "ucore": ", ".join(course.ucore),
                    "is_required": course.is_required,
                    "is_retake": course.is_retake,
                    "notes": validate_course(course),
                })
    columns = ["year", "term", "id", "name", "credits", "status", "grade",
               "ucore", "is_required", "is_retake", "notes"]
    return pd.DataFrame(rows, columns=columns)


def term_dataframe(courses: List[Course]) -> pd.DataFrame:
    """Editable grid rows for one term."""
    return pd.DataFrame(
        [
            {
                "id": c.id,
                "name": c.name,
                "credits": c.credits,
                "status": c.status.value,
                "grade": c.grade,
                "ucore": ", ".join(c.ucore),
            }
            for c in courses
        ],
        columns=["id", "name", "credits", "status", "grade", "ucore"],
    )


def _missing(value) -> bool:
    return value is None or (isinstance(value, float) and pd.isna(value))


def apply_term_edits(plan: DegreePlan, year_id: int, term: str, edited: pd.DataFrame) -> DegreePlan:
    """
    Fold an edited term grid back into the plan.

    Changed fields go through update_course() so the editing rules (retakes,
    default grades) still apply. New rows are added and missing rows removed.
    """
    key = term_key(year_id, term)
    originals = {c.id: c for c in plan.courses.get(key, [])}
    kept_ids = set()

    for row in edited.to_dict("records"):
        row = {k: None if _missing(v) else v for k, v in row.items()}
        course_id = row.get("id")

        if course_id not in originals:
            plan = add_course(plan, year_id, term, Course(
                name=str(row.get("name") or ""),
                credits=row.get("credits") or 3,
                status=row.get("status") or CourseStatus.NOT_TAKEN,
                grade=row.get("grade") or "",
            ))
            continue

        kept_ids.add(course_id)
        original = originals[course_id]
        for field in EDITABLE_FIELDS:
            value = row.get(field)
            current = getattr(original, field)
            if isinstance(current, CourseStatus):
                current = current.value
            if value is not None and value != current:
                plan = update_course(plan, year_id, term, course_id, field, value)

    for course_id in originals:
        if course_id not in kept_ids:
            plan = remove_course(plan, year_id, term, course_id)

    return plan


def generate_plan_pdf(plan: DegreePlan, stats: PlanStatistics) -> bytes:
    """
    Generate a PDF report of a degree plan.

    Creates a report containing:
    - Program selections
    - Headline GPA and credit figures
    - Every course grouped by year and term

    Args:
        plan (DegreePlan): Degree plan to report on
        stats (PlanStatistics): Figures from plan_statistics()

    Returns:
        bytes: PDF file contents as bytes
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(letter))
    styles = getSampleStyleSheet()
    elements = []

    # Create title with custom style
    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=24,
        spaceAfter=30
    )
    elements.append(Paragraph("Degree Plan Report", title_style))
    elements.append(Spacer(1, 20))

    # Add program section
    elements.append(Paragraph("Programs", styles['Heading2']))
    program_data = [
        ["Primary Major", plan.primary_major or "Not selected"],
        ["Additional Majors", ", ".join(plan.additional_majors) or "None"],
        ["Minors", ", ".join(plan.minors) or "None"],
        ["Certificates", ", ".join(plan.certificates) or "None"],
    ]
    summary_style = TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), colors.white),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.black),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 12),
        ('GRID', (0, 0), (-1, -1), 1, colors.black)
    ])
    program_table = Table(program_data)
    program_table.setStyle(summary_style)
    elements.append(program_table)
    elements.append(Spacer(1, 20))

    # Add statistics section
    elements.append(Paragraph("Progress", styles['Heading2']))
    stats_data = [
        ["GPA", f"{stats.gpa:.2f}"],
        ["Credits Earned", f"{stats.credits_earned:g}"],
        ["Credits Planned", f"{stats.credits_planned:g}"],
        ["Credits Required", str(stats.credits_required)],
        ["Credits Remaining", f"{stats.credits_remaining:g}"],
    ]
    stats_table = Table(stats_data)
    stats_table.setStyle(summary_style)
    elements.append(stats_table)
    if stats.overlap_summary:
        elements.append(Spacer(1, 10))
        elements.append(Paragraph(stats.overlap_summary, styles['Normal']))
    elements.append(Spacer(1, 20))

    # Add course section
    elements.append(Paragraph("Courses", styles['Heading2']))
    df = courses_dataframe(plan)
    if not df.empty:
        headers = ['Year', 'Term', 'Course', 'Credits', 'Status', 'Grade', 'UCORE', 'Required', 'Retake']
        course_data = [headers]
        for row in df.itertuples(index=False):
            course_data.append([
                row.year,
                row.term,
                Paragraph(row.name or "-", styles['Normal']),
                f"{row.credits:g}",
                row.status,
                row.grade,
                row.ucore,
                'Yes' if row.is_required else 'No',
                'Yes' if row.is_retake else 'No',
            ])

        col_widths = [70, 55, 230, 45, 70, 40, 80, 50, 45]
        course_table = Table(course_data, colWidths=col_widths, repeatRows=1)
        course_table.setStyle(TableStyle([
            # Header styling
            ('BACKGROUND', (0, 0), (-1, 0), WSU_CRIMSON),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            # Content styling
            ('BACKGROUND', (0, 1), (-1, -1), colors.white),
            ('TEXTCOLOR', (0, 1), (-1, -1), colors.black),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 1), (-1, -1), 8),
            ('ALIGN', (3, 1), (3, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
            ('VALIGN', (0, 0), (-1, -1), 'TOP')
        ]))
        elements.append(course_table)
    else:
        elements.append(Paragraph("No courses in this plan yet.", styles['Normal']))

    # Generate PDF
    doc.build(elements)
    pdf_data = buffer.getvalue()
    buffer.close()
    return pdf_data


def display_plan_statistics(stats: PlanStatistics):
    """
    Show headline plan figures as metrics.

    Args:
        stats (PlanStatistics): Figures from plan_statistics()
    """
    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.metric("GPA", f"{stats.gpa:.2f}" if stats.gpa else "N/A")
    with col2:
        st.metric("Credits Earned", f"{stats.credits_earned:g}")
    with col3:
        st.metric("Credits Planned", f"{stats.credits_planned:g}")
    with col4:
        st.metric("Credits Required", str(stats.credits_required))
    with col5:
        st.metric("Credits Remaining", f"{stats.credits_remaining:g}")

    if stats.overlap_summary:
        st.info(stats.overlap_summary)


def display_term(
    plan: DegreePlan,
    year_id: int,
    term: str,
    max_credits: int,
    version: int = 0,
) -> Optional[pd.DataFrame]:
    """
    Editable grid for one term.

    version is bumped by the caller whenever the plan is replaced so the
    grid starts from the new data instead of replaying old edits.

    Returns:
        The edited DataFrame, for apply_term_edits()
    """
    key = term_key(year_id, term)
    credits = term_credits(plan, key)
    st.subheader(f"{term} ({credits} credits)")
    if credits >= max_credits:
        st.caption(f"Full load: {max_credits}+ credits")

    return st.data_editor(
        term_dataframe(plan.courses.get(key, [])),
        key=f"term_{key}_{version}",
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_config={
            "id": None,
            "name": st.column_config.TextColumn(
                "Course",
                help="Course code and title, e.g. CPTS 121 or UCORE [HUM] Elective",
                width="large",
            ),
            "credits": st.column_config.NumberColumn(
                "Credits",
                min_value=0,
                max_value=20,
                step=1,
                format="%d",
            ),
            "status": st.column_config.SelectboxColumn(
                "Status",
                options=STATUS_OPTIONS,
                required=True,
            ),
            "grade": st.column_config.SelectboxColumn(
                "Grade",
                options=GRADE_OPTIONS,
            ),
            "ucore": st.column_config.TextColumn(
                "UCORE",
                disabled=True,
            ),
        },
    )


def display_grade_scale(scale: GradeScale):
    """Reference table of grade points for a scale."""
    st.caption(scale.description)
    st.dataframe(
        pd.DataFrame(list(scale.points.items()), columns=["Grade", "Points"]),
        hide_index=True,
        column_config={
            "Points": st.column_config.NumberColumn("Points", format="%.1f"),
        },
    )


def display_category_results(
    categories: List[GradingCategory],
    target_grade: str,
    target_index: Optional[int],
    ladder: ThresholdLadder,
):
    """
    Current grade and needed score for the class grade calculator.

    Args:
        categories (List[GradingCategory]): Syllabus categories
        target_grade (str): Letter grade to aim for
        target_index (Optional[int]): Ungraded category to solve for
        ladder (ThresholdLadder): Percentage-to-letter preset
    """
    summary = grade_summary(categories, ladder)
    if summary.weight_warning:
        st.warning(f"Category weights total {summary.total_weight:g}% (should be 100%)")

    col1, col2 = st.columns(2)
    with col1:
        if summary.current_grade is None:
            st.metric("Current Grade", "N/A")
        else:
            st.metric(
                "Current Grade",
                f"{summary.current_grade:.2f}%",
                help=f"Out of the {summary.weight_used:g}% of the course graded so far",
            )
    with col2:
        st.metric("Letter", summary.letter or "N/A")

    if target_index is None:
        return

    result = needed_score(categories, target_grade, target_index, ladder)
    if isinstance(result, NeededScoreError):
        st.error(result.error)
    elif result.unreachable:
        st.error(
            f"You would need {result.needed_percentage:.2f}% on "
            f"{categories[target_index].name} for a {result.target_grade}; "
            "that target is out of reach."
        )
    elif result.already_achieved:
        st.success(f"You already have enough for a {result.target_grade}.")
    else:
        st.info(
            f"You need {result.needed_percentage:.2f}% on "
            f"{categories[target_index].name} for a {result.target_grade} "
            f"({result.remaining_weight:g}% of the course is still ungraded)."
        )


def category_rows(categories: List[GradingCategory]) -> List[Dict]:
    return [c.model_dump() for c in categories]


def categories_from_rows(rows: List[Dict]) -> List[GradingCategory]:
    """Categories from edited grid rows; blank cells count as 0."""
    categories = []
    for row in rows:
        row = {k: None if _missing(v) else v for k, v in row.items()}
        categories.append(GradingCategory(
            name=str(row.get("name") or ""),
            weight=row.get("weight") or 0,
            earned_points=row.get("earned_points") or 0,
            total_points=row.get("total_points") or 0,
        ))
    return categories
