"""
Result Upload Router
Admins upload an Excel or CSV marks sheet, one student per row. Roll number,
semester, academic year and exam type are read from their columns (or the
form when the sheet has none); every other column holding a number is a
subject, scored exactly like a manual entry. Results land as drafts.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from database import commit_or_raise, flush_or_raise, get_db
from errors import ValidationError
from models.admins import Admin
from models.results import EXAM_TYPES
from models.students import Student
from routers.bulk_import import find_header_row, parse_date, read_sheet, safe_str
from schemas.results import SubjectInput
from security import get_current_admin
from services import aggregator, lookup
from services.registration import auto_student, find_by_roll

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/results", tags=["Result Upload"])

# header -> metadata field, checked in order; anything unmatched may be a subject
META_COLUMNS = (
    ("enrollment_number", ("enroll",)),
    ("roll_number", ("roll",)),
    ("date_of_birth", ("dob", "d.o.b", "birth")),
    ("semester", ("semester",)),
    ("academic_year", ("academic", "session", "year")),
    ("exam_type", ("exam type", "examtype", "exam_type")),
    ("other", ("father", "mother", "batch", "department", "gender", "category", "mobile", "phone", "mail")),
    ("student_name", ("name",)),
    ("serial", ("s.no", "sno", "sr.no", "serial")),
)

MARKS_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*(?:/\s*(\d+(?:\.\d+)?))?$")


def classify_header(header: Any) -> Optional[str]:
    if header is None or pd.isna(header):
        return None
    h = str(header).strip().lower()
    if h in ("sem", "term"):
        return "semester"
    for field, keywords in META_COLUMNS:
        if any(k in h for k in keywords):
            return field
    return "subject"


def parse_marks_cell(value: Optional[str]) -> Optional[Tuple[str, Optional[str]]]:
    """
    "45" -> ("45", None), "45/50" -> ("45", "50").
    Blank or text cells (AB, absent) are not marks; a negative number raises.
    """
    if not value:
        return None
    text = value.strip()
    if text.startswith("-"):
        raise ValueError("Marks cannot be negative")
    match = MARKS_PATTERN.match(text)
    if not match:
        return None
    return match.group(1), match.group(2)


def subject_code(header: str) -> Optional[str]:
    code = re.sub(r"[^A-Za-z0-9]", "", header).upper()[:8]
    return code or None


def _row_error(row_num: int, roll_number: Optional[str], message: str, duplicate: bool = False) -> dict:
    return {"row": row_num, "rollNumber": roll_number, "error": message, "isDuplicate": duplicate}


@router.post("/upload")
async def upload_results(
    file: UploadFile = File(...),
    semester: Optional[int] = Form(None),
    academic_year: Optional[str] = Form(None, alias="academicYear"),
    exam_type: str = Form("Regular", alias="examType"),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Create draft results from the first sheet of an uploaded file.
    Unknown roll numbers are registered when the sheet carries a date of
    birth column; rows that fail, or whose term already has a result, are
    reported and skipped.
    """
    contents = await file.read()
    grid = read_sheet(file.filename or "", contents)
    if grid.empty:
        raise ValidationError("The uploaded file is empty")

    header_idx = find_header_row(grid)
    headers = grid.iloc[header_idx].tolist()

    columns: Dict[str, int] = {}
    subject_columns: List[Tuple[int, str]] = []
    for index, header in enumerate(headers):
        field = classify_header(header)
        if field == "subject":
            subject_columns.append((index, str(header).strip()))
        elif field:
            columns.setdefault(field, index)

    if "roll_number" not in columns:
        raise ValidationError("Could not detect a Roll Number column")
    if not subject_columns:
        raise ValidationError("Could not detect any subject columns")

    errors: List[Dict[str, Any]] = []
    seen_terms = set()
    created: Dict[str, Student] = {}
    uploaded = 0
    total_rows = 0

    for idx in range(header_idx + 1, len(grid)):
        row = grid.iloc[idx]
        row_num = idx + 1  # spreadsheet row number, 1-indexed

        if row.isna().all():
            continue

        def cell(field):
            return safe_str(row.iloc[columns[field]]) if field in columns else None

        total_rows += 1
        roll_number = cell("roll_number")
        if not roll_number:
            errors.append(_row_error(row_num, None, "Could not detect Roll Number"))
            continue
        roll_number = roll_number.upper()

        # --- TERM ---
        raw_semester = cell("semester")
        try:
            row_semester = int(float(raw_semester)) if raw_semester else semester
        except ValueError:
            row_semester = None
        if not row_semester or not 1 <= row_semester <= 8:
            errors.append(_row_error(row_num, roll_number, "Semester must be between 1 and 8"))
            continue

        row_year = cell("academic_year") or (academic_year.strip() if academic_year else None)
        if not row_year:
            errors.append(_row_error(row_num, roll_number, "Academic year is required"))
            continue

        row_exam_type = (cell("exam_type") or exam_type).strip().title()
        if row_exam_type not in EXAM_TYPES:
            errors.append(_row_error(row_num, roll_number, f"Exam type must be one of {', '.join(EXAM_TYPES)}"))
            continue

        # --- SUBJECTS ---
        subjects = []
        try:
            for index, header in subject_columns:
                marks = parse_marks_cell(safe_str(row.iloc[index]))
                if marks is None:
                    continue
                obtained, out_of = marks
                subjects.append(SubjectInput(
                    name=header,
                    code=subject_code(header),
                    marks={"internal": 0, "external": obtained, "max_marks": out_of},
                ))
        except ValueError as e:
            errors.append(_row_error(row_num, roll_number, str(e)))
            continue
        if not subjects:
            errors.append(_row_error(row_num, roll_number, "No subject marks found"))
            continue

        # --- STUDENT ---
        student = created.get(roll_number) or find_by_roll(db, roll_number)
        if student is None:
            dob = parse_date(cell("date_of_birth"))
            if dob is None:
                errors.append(_row_error(row_num, roll_number, "Student not found. Add a DOB column to auto-register."))
                continue
            student = auto_student(roll_number, row_semester, dob, cell("student_name"))
            db.add(student)
            flush_or_raise(db, "No results were uploaded")
            created[roll_number] = student

        term = (student.id, row_semester, row_year, row_exam_type)
        if term in seen_terms or lookup.term_taken(db, *term):
            errors.append(_row_error(row_num, roll_number, "Result already exists for this term", duplicate=True))
            continue
        seen_terms.add(term)

        aggregator.build_result(db, student, row_semester, row_year, row_exam_type, subjects)
        uploaded += 1

    # one transaction: a database failure uploads nothing
    commit_or_raise(db, "No results were uploaded")

    logger.info(
        "Result upload by %s: %s uploaded, %s students registered, %s rejected from %s",
        admin.username, uploaded, len(created), len(errors), file.filename,
    )
    return {
        "success": True,
        "message": f"Processed {total_rows} rows. Uploaded: {uploaded}",
        "totalRows": total_rows,
        "uploadedCount": uploaded,
        "studentsCreated": len(created),
        "errorCount": len(errors),
        "errors": errors,
    }
