from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import Field, field_validator

from models.results import EXAM_TYPES
from schemas.common import CamelModel, StrictCamelModel
from schemas.students import StudentBrief, normalize_roll_number

ExamType = Literal[EXAM_TYPES]


# -----------------------------
# Input
# -----------------------------
class SubjectMarks(CamelModel):
    # raw values: coerced to int by the aggregator, unparsable -> 0
    internal: Any = 0
    external: Any = 0
    max_marks: Any = None

    @field_validator("internal", "external", "max_marks")
    @classmethod
    def reject_negative(cls, v):
        if v is None or isinstance(v, bool):
            return v
        try:
            number = float(str(v).strip())
        except ValueError:
            return v
        if number < 0:
            raise ValueError("Marks cannot be negative")
        return v


class SubjectInput(CamelModel):
    name: str = Field(..., min_length=1, max_length=150)
    code: Optional[str] = None
    credits: Optional[int] = Field(None, ge=0, le=20)
    marks: SubjectMarks = SubjectMarks()


class ManualResultCreate(CamelModel):
    roll_number: str
    semester: int = Field(..., ge=1, le=8)
    academic_year: str = Field(..., min_length=4, max_length=20)
    exam_type: ExamType = "Regular"
    subjects: List[SubjectInput] = Field(..., min_length=1)
    remarks: Optional[str] = None

    # only used when the roll number is not registered yet
    date_of_birth: Optional[str] = None
    student_name: Optional[str] = None

    @field_validator("roll_number")
    @classmethod
    def validate_roll_number(cls, v: str):
        return normalize_roll_number(v)


class ResultUpdate(StrictCamelModel):
    """Fields an admin may change on a stored result. Everything else is computed or protected."""

    academic_year: Optional[str] = Field(None, min_length=4, max_length=20)
    exam_type: Optional[ExamType] = None
    remarks: Optional[str] = None
    subjects: Optional[List[SubjectInput]] = Field(None, min_length=1)


class ResultCheckRequest(CamelModel):
    roll_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    semester: Optional[int] = Field(None, ge=1, le=8)


class BulkPublishRequest(CamelModel):
    semester: Optional[int] = None
    department: Optional[str] = None
    academic_year: Optional[str] = None
    action: Optional[str] = None


class BulkDeleteRequest(CamelModel):
    ids: List[int] = Field(..., min_length=1)


# -----------------------------
# Output
# -----------------------------
class SubjectMarksOut(CamelModel):
    internal: int
    external: int
    total: int
    max_marks: int


class ResultSubjectOut(CamelModel):
    course_code: str
    course_name: str
    course_id: Optional[int] = None
    credits: int = 0
    marks: SubjectMarksOut
    grade: str
    grade_point: int
    status: str


class ResultOut(CamelModel):
    id: int
    student_id: Optional[int] = None
    roll_number: str
    semester: int
    academic_year: str
    exam_type: str
    subjects: List[ResultSubjectOut] = []
    sgpa: Optional[float] = None
    cgpa: Optional[float] = None
    total_credits: int = 0
    credits_earned: int = 0
    total_marks: int = 0
    max_marks: int = 0
    percentage: float = 0.0
    result: str
    remarks: Optional[str] = None
    is_published: bool
    declared_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResultWithStudentOut(ResultOut):
    student: Optional[StudentBrief] = None
