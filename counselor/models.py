"""
Data Models Module

This module defines the core data models used throughout the degree planner.
It provides Pydantic models for:
1. Course records and their status
2. Weighted grading categories for the class grade calculator
3. Elective requirement descriptors and catalog filters
4. The degree plan aggregate and computed statistics

The models enforce data validation and provide a consistent structure for:
- GPA and credit calculations
- Requirement classification from catalog footnotes
- Spreadsheet import/export and plan persistence
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CourseStatus(str, Enum):
    """
    Possible states for a course in a degree plan.

    NOT_TAKEN: Listed in the plan but not scheduled
    IN_PROGRESS: Student is currently enrolled
    COMPLETED: Finished with a grade; the only status whose grade is read
    PLANNED: Scheduled for a future term
    FAILED: Attempted and not passed; a retake may be planned
    """
    NOT_TAKEN = "not-taken"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    PLANNED = "planned"
    FAILED = "failed"


class Course(BaseModel):
    """
    Course record as it appears in a degree plan or calculator.

    A name beginning with "PREFIX NUMBER" (e.g. "CPTS 121") is a concrete
    course; anything else ("UCORE Inquiry", "Technical Elective") is a
    placeholder slot. Only completed courses have their grade read.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[str] = Field(
        None,
        description="Stable identifier assigned by the planner"
    )
    name: str = Field(
        default="",
        description="Course code and/or title, free text"
    )
    credits: float = Field(
        default=0.0,
        ge=0,
        description="Credit hours; zero means no contribution to any aggregate"
    )
    status: CourseStatus = Field(
        default=CourseStatus.NOT_TAKEN,
        description="Where the course stands in the plan"
    )
    grade: str = Field(
        default="",
        description="Letter grade (A+ through F) or S/U/W/I; empty if none"
    )
    ucore: List[str] = Field(
        default_factory=list,
        description="UCORE category tags explicitly attached to the course"
    )
    is_required: bool = Field(
        default=False,
        description="Course was populated from degree requirements"
    )
    is_retake: bool = Field(
        default=False,
        description="Course is a scheduled retake of a failed attempt"
    )
    original_id: Optional[str] = Field(
        None,
        description="Id of the failed course a retake replaces"
    )
    note: str = Field(
        default="",
        description="Catalog footnote or free-form note"
    )

    @field_validator("grade", mode="before")
    @classmethod
    def normalize_grade(cls, v):
        """Upper-case and strip grades; treat None as no grade."""
        if v is None:
            return ""
        return str(v).strip().upper()

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        """Accept "In Progress", "in_progress" and friends."""
        if v is None or v == "":
            return CourseStatus.NOT_TAKEN
        if isinstance(v, CourseStatus):
            return v
        return str(v).strip().lower().replace("_", "-").replace(" ", "-")

    @field_validator("ucore", mode="before")
    @classmethod
    def split_ucore(cls, v):
        """Allow a comma-delimited string in place of a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


class GradingCategory(BaseModel):
    """
    Weighted grading category (homework, exams, ...) in a class syllabus.

    A category with total_points == 0 has not been graded yet and counts as
    remaining work.
    """
    name: str = Field(
        default="",
        description="Label only"
    )
    weight: float = Field(
        default=0.0,
        description="Percentage points of the final grade"
    )
    earned_points: float = Field(
        default=0.0,
        description="Raw points earned so far"
    )
    total_points: float = Field(
        default=0.0,
        description="Raw points possible so far; 0 means ungraded"
    )


class LevelRange(BaseModel):
    """Inclusive course-number level range such as 300-400."""
    min: int
    max: int


class AllowedCourse(BaseModel):
    """
    A course (or level range of courses) named in requirement text.

    Exactly one of number / level_range is set.
    """
    prefix: str = Field(
        ...,
        description="Catalog prefix, whitespace-normalised (e.g. 'CPT S')"
    )
    number: Optional[str] = Field(
        None,
        description="Three-digit course number with optional letter suffix"
    )
    level_range: Optional[LevelRange] = Field(
        None,
        description="Level range for '300-400-level' style text"
    )
    code: str = Field(
        ...,
        description="Display code, e.g. 'CPT S 321' or 'CPT S 300-400 level'"
    )


class RequirementType(str, Enum):
    """Elective requirement kinds detected from catalog text."""
    UCORE = "UCORE"
    CS = "CS"
    TECHNICAL = "Technical"
    GENERAL = "General"
    COURSE_LIST = "CourseList"


class Requirement(BaseModel):
    """
    Elective requirement descriptor derived from footnote text.

    Classification is heuristic; source_text is kept so a reviewer can
    override a wrong guess.
    """
    type: RequirementType
    category: Optional[str] = Field(
        None,
        description="UCORE tag for UCORE requirements"
    )
    allowed_courses: List[AllowedCourse] = Field(
        default_factory=list,
        description="Explicit courses or level ranges named in the text"
    )
    description: str = Field(
        default="",
        description="Human-readable summary"
    )
    source_text: str = Field(
        default="",
        description="Raw text the requirement was derived from"
    )


class FilterKind(str, Enum):
    """Catalog query scoping derived from a requirement."""
    COURSELIST = "COURSELIST"
    UCORE = "UCORE"
    PREFIX = "PREFIX"
    TECHNICAL = "TECHNICAL"
    GENERAL = "GENERAL"


class ElectiveFilter(BaseModel):
    """
    Catalog search filter for filling an elective slot.

    kind is None only when no requirement was given; exclude_codes is
    always present.
    """
    kind: Optional[FilterKind] = None
    ucore_category: Optional[str] = None
    prefixes: List[str] = Field(default_factory=list)
    allowed_courses: List[AllowedCourse] = Field(default_factory=list)
    exclude_codes: List[str] = Field(
        default_factory=list,
        description="Normalised 'PREFIX NUMBER' codes already in the plan"
    )


class AcademicYear(BaseModel):
    """Plan year; id is the number used in term keys ("1-Fall")."""
    id: int
    name: str


class DegreePlan(BaseModel):
    """
    Degree plan aggregate.

    Courses are held per term under keys of the form "<year id>-<term>".
    Each additional program raises the fallback credit requirement.
    """
    primary_major: Optional[str] = Field(
        None,
        description="Name of the selected degree"
    )
    additional_majors: List[str] = Field(default_factory=list)
    minors: List[str] = Field(default_factory=list)
    certificates: List[str] = Field(default_factory=list)
    years: List[AcademicYear] = Field(default_factory=list)
    courses: Dict[str, List[Course]] = Field(
        default_factory=dict,
        description="Courses partitioned by '<year id>-<term>' key"
    )


class CategoryGradeSummary(BaseModel):
    """Current weighted grade with the weight totals a caller warns on."""
    current_grade: Optional[float]
    letter: Optional[str]
    weight_used: float
    total_weight: float
    weight_warning: bool


class NeededScore(BaseModel):
    """Score needed on one ungraded category to reach a target grade."""
    needed_percentage: float
    current_grade: float
    remaining_weight: float
    target_grade: str
    target_threshold: float
    unreachable: bool = Field(
        default=False,
        description="Needed percentage is above 100"
    )
    already_achieved: bool = Field(
        default=False,
        description="Needed percentage is 0 or below"
    )


class NeededScoreError(BaseModel):
    """Needed score could not be solved for; shown inline to the user."""
    error: str


class RemainingWorkProjection(BaseModel):
    """Quick per-course projection from a single earned/total pair."""
    current_percentage: float
    current_letter: str
    remaining_percent: float
    needed_percentage: Optional[float] = Field(
        None,
        description="Average needed on the rest of the course; None when nothing remains"
    )
    achievable: bool
    already_achieved: bool


class OverlapAnalysis(BaseModel):
    """Course partitions that hint at cross-counting between programs."""
    ucore_courses: List[Course] = Field(default_factory=list)
    major_electives: List[Course] = Field(default_factory=list)
    potential_cross_listed: List[Course] = Field(default_factory=list)


class UcoreSatisfaction(BaseModel):
    """Which required UCORE categories the plan covers, and by what."""
    required: List[str] = Field(default_factory=list)
    satisfied: List[str] = Field(default_factory=list)
    remaining: List[str] = Field(default_factory=list)
    satisfied_map: Dict[str, List[Course]] = Field(default_factory=dict)


class PlanStatistics(BaseModel):
    """Headline numbers shown above the degree planner."""
    gpa: float
    credits_earned: float
    credits_planned: float
    credits_required: int
    credits_remaining: float
    total_credits: float
    overlaps: OverlapAnalysis
    overlap_summary: Optional[str] = None
