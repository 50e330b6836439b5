"""
Spreadsheet Module

Excel export, import and blank template for degree plans.

Workbooks have a single "Degree Plan" sheet with the columns
Year | Semester | Course | Credits | Status | Grade | Required | Retake
where Required and Retake are "Yes"/"No". Year holds the academic year
name ("2024-2025"), which is how imported rows are matched to plan years.
"""

import io
import logging
import zipfile
from datetime import date
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Union

import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException

from .models import AcademicYear, Course, DegreePlan
from .parsers import parse_course
from .planner import DEFAULT_CREDITS, TERMS, create_initial_courses_structure, new_course_id, term_key

logger = logging.getLogger(__name__)

SHEET_NAME = "Degree Plan"
COLUMNS = ["Year", "Semester", "Course", "Credits", "Status", "Grade", "Required", "Retake"]
COLUMN_WIDTHS = {"A": 15, "B": 10, "C": 20, "D": 10, "E": 15, "F": 8, "G": 10, "H": 10}
HEADER_FONT = Font(bold=True, color="FFFFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="FF981E32")

TEMPLATE_ROWS_PER_TERM = 6
TEMPLATE_YEARS = 5

Target = Union[str, BinaryIO]


class SpreadsheetError(Exception):
    """Raised when a workbook can't be read as a degree plan."""


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, float) and pd.isna(value))


def _import_credits(value: Any) -> int:
    """Whole credits from a cell; blank, zero or junk means 3."""
    try:
        credits = int(float(value))
    except (TypeError, ValueError):
        return DEFAULT_CREDITS
    return credits or DEFAULT_CREDITS


def plan_rows(plan: DegreePlan) -> List[Dict[str, Any]]:
    """One row per course, in year then Fall/Spring/Summer order."""
    rows = []
    for year in plan.years:
        for term in TERMS:
            for course in plan.courses.get(term_key(year.id, term), []):
                rows.append({
                    "Year": year.name,
                    "Semester": term,
                    "Course": course.name,
                    "Credits": course.credits,
                    "Status": course.status.value,
                    "Grade": course.grade,
                    "Required": _yes_no(course.is_required),
                    "Retake": _yes_no(course.is_retake),
                })
    return rows


def _write_workbook(rows: List[Dict[str, Any]], target: Optional[Target]) -> Optional[bytes]:
    df = pd.DataFrame(rows, columns=COLUMNS)
    output = target if target is not None else io.BytesIO()

    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=SHEET_NAME)
        ws = writer.sheets[SHEET_NAME]

        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
        for col_letter, width in COLUMN_WIDTHS.items():
            ws.column_dimensions[col_letter].width = width
        ws.freeze_panes = "A2"

    if target is None:
        return output.getvalue()
    return None


def export_plan_to_excel(plan: DegreePlan, target: Optional[Target] = None) -> Optional[bytes]:
    """
    Write a plan to an .xlsx workbook.

    Args:
        plan: Degree plan to export
        target: Path or binary file object; when omitted the workbook is
            returned as bytes

    Returns:
        Workbook bytes when no target was given, otherwise None
    """
    rows = plan_rows(plan)
    logger.info(f"Exporting {len(rows)} courses to Excel")
    return _write_workbook(rows, target)


def export_filename(plan: DegreePlan, today: Optional[date] = None) -> str:
    """Download name such as Degree_Plan_Computer Science_2024-09-01.xlsx"""
    today = today or date.today()
    return f"Degree_Plan_{plan.primary_major or 'Custom'}_{today.isoformat()}.xlsx"


def build_template(years: Iterable[AcademicYear], target: Optional[Target] = None) -> Optional[bytes]:
    """
    Blank workbook for filling in a plan offline.

    Six 3-credit not-taken rows per term for the first five years.
    """
    rows = []
    for year in list(years)[:TEMPLATE_YEARS]:
        for term in TERMS:
            for _ in range(TEMPLATE_ROWS_PER_TERM):
                rows.append({
                    "Year": year.name,
                    "Semester": term,
                    "Course": "",
                    "Credits": DEFAULT_CREDITS,
                    "Status": "not-taken",
                    "Grade": "",
                    "Required": "No",
                    "Retake": "No",
                })
    return _write_workbook(rows, target)


def import_plan_from_excel(
    source: Union[str, BinaryIO, bytes],
    years: Iterable[AcademicYear],
) -> Dict[str, List[Course]]:
    """
    Read plan courses from a workbook.

    Rows are matched to plan years by the Year column; rows for unknown
    years or terms are skipped. Blank credits become 3 and a blank status
    becomes not-taken.

    Args:
        source: Path, binary file object or raw workbook bytes
        years: Plan years to match against

    Returns:
        Courses keyed by term, with an (empty) entry for every plan term

    Raises:
        SpreadsheetError: Unreadable workbook or no "Degree Plan" sheet
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)

    try:
        df = pd.read_excel(source, sheet_name=SHEET_NAME, dtype=object, engine="openpyxl")
    except (ValueError, KeyError, OSError, zipfile.BadZipFile, InvalidFileException) as e:
        logger.error(f"Could not read degree plan workbook: {str(e)}")
        raise SpreadsheetError(f"Could not read degree plan workbook: {str(e)}")

    years = list(years)
    year_ids = {year.name: year.id for year in years}
    imported = create_initial_courses_structure(years)
    skipped = 0

    for row in df.itertuples(index=False):
        cells = [None if _blank(v) else v for v in row]
        cells += [None] * (len(COLUMNS) - len(cells))
        year_name, semester, name, credits, status, grade, required, retake = cells[:len(COLUMNS)]

        year_id = year_ids.get(str(year_name).strip()) if year_name is not None else None
        semester = str(semester).strip().title() if semester is not None else ""
        if year_id is None or semester not in TERMS:
            skipped += 1
            continue

        course = parse_course({
            "name": str(name) if name is not None else "",
            "credits": _import_credits(credits),
            "status": status or "not-taken",
            "grade": str(grade) if grade is not None else "",
            "isRequired": required == "Yes",
            "isRetake": retake == "Yes",
        })
        course.id = new_course_id()
        imported[term_key(year_id, semester)].append(course)

    if skipped:
        logger.warning(f"Skipped {skipped} spreadsheet rows with unknown year or semester")
    logger.info(f"Imported {sum(len(v) for v in imported.values())} courses from Excel")
    return imported
