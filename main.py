# main.py

import pandas as pd
import streamlit as st

from counselor.category_grades import default_categories, points_needed
from counselor.config import config
from counselor.display import (
    apply_term_edits,
    categories_from_rows,
    category_rows,
    courses_dataframe,
    display_category_results,
    display_grade_scale,
    display_plan_statistics,
    display_term,
    generate_plan_pdf,
)
from counselor.gpa import create_gpa_calculator
from counselor.grade_scale import GRADE_SCALES, THRESHOLD_LADDERS, get_grade_scale, get_threshold_ladder
from counselor.models import CourseStatus, GradingCategory
from counselor.parsers import parse_courses
from counselor.planner import (
    TERMS,
    PlanHistory,
    add_program,
    add_year,
    all_courses,
    plan_statistics,
    populate_from_requirements,
    remove_program,
    reset_plan,
    year_label,
)
from counselor.requirements import (
    UCORE_CATEGORIES,
    UCORE_CATEGORY_NAMES,
    build_elective_filter,
    compute_ucore_satisfaction,
    parse_elective_requirements,
)
from counselor.spreadsheet import (
    SpreadsheetError,
    build_template,
    export_filename,
    export_plan_to_excel,
    import_plan_from_excel,
)
from counselor.store import create_store


st.set_page_config(
    page_title="Virtual Counselor",
    layout="wide",
)

# ──────────────────────────────────────────────────────────────────────────
# Helper: plan state
# ──────────────────────────────────────────────────────────────────────────

def commit_plan(plan):
    """Record a new plan version, persist it and redraw."""
    st.session_state.history.push(plan)
    st.session_state.store.save_degree_plan(plan)
    st.session_state.plan_version += 1
    st.rerun()


def parse_requirement_lines(text: str):
    """One course per line: "CPTS 121 [QUAN], 4" (credits optional)."""
    records = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        name, _, credits = line.rpartition(",")
        if name and credits.strip().replace(".", "", 1).isdigit():
            records.append({"name": name.strip(), "credits": float(credits)})
        else:
            records.append({"name": line})
    return records


# ──────────────────────────────────────────────────────────────────────────
# Degree Planner tab
# ──────────────────────────────────────────────────────────────────────────

def render_programs(plan):
    """Primary major plus additional majors, minors and certificates."""
    with st.expander("Programs", expanded=not plan.primary_major):
        major = st.text_input("Primary major", value=plan.primary_major or "")
        if major.strip() != (plan.primary_major or ""):
            updated = plan.model_copy(deep=True)
            updated.primary_major = major.strip() or None
            commit_plan(updated)

        col1, col2 = st.columns([1, 2])
        with col1:
            kind = st.selectbox("Program type", ["major", "minor", "certificate"])
        with col2:
            name = st.text_input("Program name", key="new_program_name")
        if st.button("Add program") and name.strip():
            commit_plan(add_program(plan, kind, name))

        for kind, label, programs in (
            ("major", "Additional major", plan.additional_majors),
            ("minor", "Minor", plan.minors),
            ("certificate", "Certificate", plan.certificates),
        ):
            for program in programs:
                col1, col2 = st.columns([4, 1])
                col1.write(f"{label}: {program}")
                if col2.button("Remove", key=f"remove_{kind}_{program}"):
                    commit_plan(remove_program(plan, kind, program))


def render_requirements(plan):
    """Requirement population, elective lookup and UCORE coverage."""
    with st.expander("Degree requirements"):
        text = st.text_area(
            "Required courses, one per line",
            placeholder="CPTS 121 [QUAN], 4\nENGLISH 101 [WRTG], 3\nUCORE [HUM] Elective",
            height=150,
        )
        if st.button("Populate plan") and text.strip():
            commit_plan(populate_from_requirements(plan, parse_requirement_lines(text)))

        st.markdown("###### Elective footnote")
        footnote = st.text_input(
            "Footnote text",
            placeholder="Technical elective: choose from CPT S 321, 322 or 323",
        )
        if footnote:
            requirements = parse_elective_requirements(footnote)
            if not requirements:
                st.caption("No elective requirement recognised.")
            for requirement in requirements:
                st.write(requirement.description)
                search_filter = build_elective_filter(requirement, all_courses(plan))
                st.json(search_filter.model_dump(mode="json", exclude_none=True))

        st.markdown("###### UCORE coverage")
        required = st.multiselect(
            "Required UCORE categories",
            options=list(UCORE_CATEGORIES),
            format_func=lambda tag: f"{tag} - {UCORE_CATEGORY_NAMES[tag]}",
        )
        if required:
            coverage = compute_ucore_satisfaction(required, all_courses(plan))
            for tag in coverage.satisfied:
                names = ", ".join(c.name for c in coverage.satisfied_map[tag])
                st.write(f"✅ {tag}: {names}")
            for tag in coverage.remaining:
                st.write(f"❌ {tag}: not yet in the plan")


def render_import_export(plan, stats):
    """Excel import/export, template and PDF report."""
    col1, col2, col3 = st.columns(3)
    with col1:
        st.download_button(
            "Export to Excel",
            data=export_plan_to_excel(plan),
            file_name=export_filename(plan),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
    with col2:
        st.download_button(
            "Blank template",
            data=build_template(plan.years),
            file_name="Degree_Plan_Template.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
    with col3:
        st.download_button(
            "PDF report",
            data=generate_plan_pdf(plan, stats),
            file_name="Degree_Plan_Report.pdf",
            mime="application/pdf",
        )

    uploaded = st.file_uploader("Import a degree plan workbook", type="xlsx")
    if uploaded is not None and st.button("Import", key="import_button"):
        try:
            courses = import_plan_from_excel(uploaded, plan.years)
        except SpreadsheetError as e:
            st.error(str(e))
        else:
            updated = plan.model_copy(deep=True)
            updated.courses = courses
            commit_plan(updated)


def render_planner_tab():
    """Render the Degree Planner tab content."""
    st.header("Degree Planner")
    history = st.session_state.history
    plan = history.state
    stats = plan_statistics(plan)

    col1, col2, col3, _ = st.columns([1, 1, 1, 5])
    if col1.button("Undo", disabled=not history.can_undo):
        plan = history.undo()
        st.session_state.store.save_degree_plan(plan)
        st.session_state.plan_version += 1
        st.rerun()
    if col2.button("Redo", disabled=not history.can_redo):
        plan = history.redo()
        st.session_state.store.save_degree_plan(plan)
        st.session_state.plan_version += 1
        st.rerun()
    if col3.button("Reset Plan", help="Reset degree planner and clear saved selections"):
        st.session_state.store.clear_all_data()
        commit_plan(reset_plan())

    render_programs(plan)
    display_plan_statistics(stats)
    render_requirements(plan)

    year_tabs = st.tabs(
        [f"{year_label(i)} ({year.name})" for i, year in enumerate(plan.years)] + ["+ Add Year"]
    )
    for year, tab in zip(plan.years, year_tabs):
        with tab:
            columns = st.columns(len(TERMS))
            for term, column in zip(TERMS, columns):
                with column:
                    edited = display_term(
                        plan, year.id, term,
                        config.planner.max_term_credits,
                        st.session_state.plan_version,
                    )
                    if edited is not None:
                        updated = apply_term_edits(plan, year.id, term, edited)
                        if updated != plan:
                            commit_plan(updated)
    with year_tabs[-1]:
        if st.button("Add another year"):
            commit_plan(add_year(plan))

    st.divider()
    render_import_export(plan, stats)

    with st.expander("All courses"):
        st.dataframe(courses_dataframe(plan), use_container_width=True, hide_index=True)


# ──────────────────────────────────────────────────────────────────────────
# GPA Calculator tab
# ──────────────────────────────────────────────────────────────────────────

def render_gpa_tab():
    """Render the GPA Calculator tab content."""
    st.header("GPA Calculator")

    scale_name = st.selectbox(
        "Grade scale",
        options=list(GRADE_SCALES),
        index=list(GRADE_SCALES).index(config.planner.grade_scale),
        format_func=lambda name: GRADE_SCALES[name].description,
    )
    scale = get_grade_scale(scale_name)
    calculator = create_gpa_calculator(scale_name)

    col1, col2 = st.columns([3, 1])
    with col1:
        edited = st.data_editor(
            pd.DataFrame(st.session_state.gpa_courses, columns=["name", "credits", "grade"]),
            key="gpa_courses_editor",
            num_rows="dynamic",
            use_container_width=True,
            hide_index=True,
            column_config={
                "name": st.column_config.TextColumn("Course"),
                "credits": st.column_config.NumberColumn("Credits", min_value=0, step=1),
                "grade": st.column_config.SelectboxColumn("Grade", options=list(scale.grades) + ["S", "U", "W", "I"]),
            },
        )
        records = [
            {**r, "status": CourseStatus.COMPLETED.value}
            for r in edited.to_dict("records")
            if r.get("grade") and not pd.isna(r.get("grade"))
        ]
        courses = parse_courses(records)

        prior_col1, prior_col2 = st.columns(2)
        prior_gpa = prior_col1.number_input("Current cumulative GPA", min_value=0.0, max_value=4.0, step=0.01)
        prior_credits = prior_col2.number_input("Credits behind that GPA", min_value=0.0, step=1.0)

        semester_gpa = calculator.calculate_gpa(courses)
        cumulative = calculator.calculate_cumulative_gpa(prior_gpa, prior_credits, courses)

        metric1, metric2, metric3 = st.columns(3)
        metric1.metric("Semester GPA", f"{semester_gpa:.2f}" if courses else "N/A")
        metric2.metric("Cumulative GPA", f"{cumulative:.2f}" if (courses or prior_credits) else "N/A")
        metric3.metric("Semester Credits", f"{calculator.calculate_credits_achieved(courses):g}")

    with col2:
        display_grade_scale(scale)


# ──────────────────────────────────────────────────────────────────────────
# Class Grade Calculator tab
# ──────────────────────────────────────────────────────────────────────────

def render_class_grade_tab():
    """Render the Class Grade Calculator tab content."""
    st.header("Class Grade Calculator")
    store = st.session_state.store

    ladder_name = st.selectbox(
        "Grade cutoffs",
        options=list(THRESHOLD_LADDERS),
        index=list(THRESHOLD_LADDERS).index(config.planner.threshold_ladder),
    )
    ladder = get_threshold_ladder(ladder_name)

    course_name = st.text_input("Course", placeholder="CPTS 121")
    saved = store.load_grade_calculator_data(course_name)
    categories = (
        [GradingCategory(**c) for c in saved.get("categories", [])]
        if saved else default_categories()
    )

    edited = st.data_editor(
        pd.DataFrame(category_rows(categories), columns=["name", "weight", "earned_points", "total_points"]),
        key=f"categories_{course_name}",
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_config={
            "name": st.column_config.TextColumn("Category"),
            "weight": st.column_config.NumberColumn("Weight (%)", min_value=0, max_value=100),
            "earned_points": st.column_config.NumberColumn("Points Earned", min_value=0),
            "total_points": st.column_config.NumberColumn("Points Possible", min_value=0, help="0 = not graded yet"),
        },
    )
    categories = categories_from_rows(edited.to_dict("records"))

    grades = [letter for letter, _ in ladder.thresholds if letter != "F"]
    col1, col2 = st.columns(2)
    target_grade = col1.selectbox("Target grade", grades)
    ungraded = [i for i, c in enumerate(categories) if c.total_points == 0]
    target_index = col2.selectbox(
        "Solve for category",
        options=ungraded or [None],
        format_func=lambda i: categories[i].name if i is not None else "All categories graded",
    )

    display_category_results(categories, target_grade, target_index, ladder)

    if st.button("Save", key="save_categories"):
        if store.save_grade_calculator_data(course_name, {"categories": category_rows(categories)}):
            st.success("Saved")
        else:
            st.error("Could not save calculator data")

    st.divider()
    st.subheader("Quick projection")
    col1, col2, col3 = st.columns(3)
    earned = col1.number_input("Points earned so far", min_value=0.0)
    total = col2.number_input("Points graded so far (out of 100)", min_value=0.0, max_value=100.0)
    quick_target = col3.selectbox("Target", grades, key="quick_target")
    projection = points_needed(earned, total, quick_target, get_threshold_ladder("inline"))
    if projection is not None:
        st.write(f"Current: {projection.current_percentage:.1f}% ({projection.current_letter})")
        if projection.needed_percentage is None:
            st.write("Nothing left to grade.")
        elif projection.already_achieved:
            st.success(f"{quick_target} is already secured.")
        elif not projection.achievable:
            st.error(f"{quick_target} is no longer reachable.")
        else:
            st.info(f"Average {projection.needed_percentage:.1f}% on the remaining {projection.remaining_percent:g}%.")


# ──────────────────────────────────────────────────────────────────────────
# Main entry point
# ──────────────────────────────────────────────────────────────────────────

def main():
    st.title("Virtual Counselor")

    # ── Session‑state defaults ── #
    if "store" not in st.session_state:
        st.session_state.store = create_store()
    if "history" not in st.session_state:
        plan = st.session_state.store.load_degree_plan() or reset_plan()
        st.session_state.history = PlanHistory(plan, config.planner.history_limit)
    if "plan_version" not in st.session_state:
        st.session_state.plan_version = 0
    if "gpa_courses" not in st.session_state:
        st.session_state.gpa_courses = [{"name": "", "credits": 3, "grade": None}]

    # ── Tabs ── #
    planner_tab, gpa_tab, class_tab = st.tabs(
        [
            "Degree Planner",
            "GPA Calculator",
            "Class Grade Calculator",
        ]
    )

    with planner_tab:
        render_planner_tab()

    with gpa_tab:
        render_gpa_tab()

    with class_tab:
        render_class_grade_tab()


if __name__ == "__main__":
    main()
