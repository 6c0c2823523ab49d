import re
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from models.students import CATEGORIES, GENDERS, PROGRAMS, STUDENT_STATUSES
from schemas.common import CamelModel, StrictCamelModel, to_date

ROLL_NUMBER_RE = re.compile(r"^[A-Z0-9\-_/]+$")

Gender = Literal[GENDERS]
Category = Literal[CATEGORIES]
Program = Literal[PROGRAMS]
StudentStatus = Literal[STUDENT_STATUSES]


def normalize_roll_number(value: str) -> str:
    cleaned = str(value).strip().upper()
    if not cleaned or not ROLL_NUMBER_RE.match(cleaned):
        raise ValueError("Roll number must be alphanumeric (hyphens/underscores/slashes allowed)")
    return cleaned


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value.strip() if isinstance(value, str) else value


class StudentRegister(CamelModel):
    roll_number: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: Gender
    department: str = Field(..., min_length=1, max_length=50)
    current_semester: int = Field(1, ge=1, le=8)

    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    category: Category = "General"
    program: Program = "BA"
    batch: Optional[str] = None
    admission_year: Optional[int] = None
    enrollment_number: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r"^[6-9]\d{9}$")

    @field_validator("roll_number")
    @classmethod
    def validate_roll_number(cls, v: str):
        return normalize_roll_number(v)

    @field_validator("email", "phone", "enrollment_number", "batch", mode="before")
    @classmethod
    def empty_as_missing(cls, v):
        return _blank_to_none(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]):
        return v.lower() if v else v

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def date_only(cls, v):
        return to_date(v)

    @field_validator("father_name", "mother_name")
    @classmethod
    def upper_parent_name(cls, v: Optional[str]):
        return v.strip().upper() if v else v


class StudentUpdate(StrictCamelModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    category: Optional[Category] = None
    department: Optional[str] = Field(None, min_length=1, max_length=50)
    program: Optional[Program] = None
    current_semester: Optional[int] = Field(None, ge=1, le=8)
    batch: Optional[str] = None
    admission_year: Optional[int] = None
    status: Optional[StudentStatus] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r"^[6-9]\d{9}$")

    @field_validator("email", "phone", "batch", mode="before")
    @classmethod
    def empty_as_missing(cls, v):
        return _blank_to_none(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]):
        return v.lower() if v else v

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def date_only(cls, v):
        return None if v is None else to_date(v)


class StudentOut(CamelModel):
    id: int
    roll_number: str
    enrollment_number: Optional[str] = None
    first_name: str
    last_name: str
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    date_of_birth: date
    gender: str
    category: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    department: str
    program: Optional[str] = None
    current_semester: int
    batch: Optional[str] = None
    admission_year: Optional[int] = None
    status: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None


class StudentBrief(CamelModel):
    id: int
    roll_number: str
    first_name: str
    last_name: str
    department: str
    program: Optional[str] = None


class PromoteRequest(CamelModel):
    department: str
    current_semester: int = Field(..., ge=1, le=8)
    target_semester: int = Field(..., ge=1, le=8)


class StudentLogin(CamelModel):
    identifier: Optional[str] = None  # roll number or email
    roll_number: Optional[str] = None
    password: str
