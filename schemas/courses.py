from typing import Literal, Optional

from pydantic import Field, field_validator

from models.courses import COURSE_TYPES
from schemas.common import CamelModel, StrictCamelModel

CourseType = Literal[COURSE_TYPES]


class CourseCreate(CamelModel):
    course_code: str = Field(..., min_length=2, max_length=20)
    course_name: str = Field(..., min_length=2, max_length=150)
    credits: int = Field(4, ge=0, le=20)
    department: str = Field(..., min_length=1, max_length=50)
    semester: int = Field(..., ge=1, le=8)
    course_type: CourseType = "Theory"
    max_marks: int = Field(100, ge=1)
    passing_marks: int = Field(33, ge=0)
    description: Optional[str] = None

    @field_validator("course_code")
    @classmethod
    def upper_code(cls, v: str):
        return v.strip().upper().replace(" ", "")


class CourseUpdate(StrictCamelModel):
    course_name: Optional[str] = Field(None, min_length=2, max_length=150)
    credits: Optional[int] = Field(None, ge=0, le=20)
    department: Optional[str] = Field(None, min_length=1, max_length=50)
    semester: Optional[int] = Field(None, ge=1, le=8)
    course_type: Optional[CourseType] = None
    max_marks: Optional[int] = Field(None, ge=1)
    passing_marks: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CourseOut(CamelModel):
    id: int
    course_code: str
    course_name: str
    credits: int
    department: str
    semester: int
    course_type: str
    max_marks: int
    passing_marks: int
    description: Optional[str] = None
    is_active: bool = True
