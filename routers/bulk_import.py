"""
Student Bulk Import Router
Allows administrators to upload Excel or CSV sheets of students. The header
row is located automatically and columns are matched by loose header names
("Roll No", "Student Name", "Mobile", "DOB", ...).
"""

import io
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from database import commit_or_raise, get_db
from errors import ValidationError
from models.admins import Admin
from models.students import GENDERS, Student
from schemas.students import StudentRegister
from security import get_current_admin, hash_password
from services.registration import default_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/students", tags=["Bulk Import"])

HEADER_SCAN_ROWS = 10
HEADER_KEYWORDS = ("roll", "name", "enroll", "mobile")

# checked in order, first match wins for a header ("enrollment" contains "roll")
COLUMN_ALIASES = (
    ("enrollment_number", ("enroll",)),
    ("roll_number", ("roll",)),
    ("father_name", ("father",)),
    ("mother_name", ("mother",)),
    ("last_name", ("last", "surname")),
    ("first_name", ("first", "name", "student")),
    ("email", ("email", "mail")),
    ("phone", ("phone", "mobile", "contact")),
    ("date_of_birth", ("dob", "birth")),
    ("gender", ("gender", "sex")),
    ("category", ("category", "caste")),
    ("batch", ("batch",)),
)

REQUIRED_COLUMNS = ("roll_number", "first_name", "date_of_birth")


# ==========================================
#   CELL HELPERS
# ==========================================

def safe_str(value) -> Optional[str]:
    """Safely convert value to string, handling NaN and None"""
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    if text.endswith(".0") and text[:-2].isdigit():
        text = text[:-2]
    return text or None


def parse_date(value) -> Optional[date]:
    """Parse date from the formats spreadsheets commonly produce"""
    if value is None or pd.isna(value):
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    date_formats = [
        "%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%Y/%m/%d",
        "%d-%b-%Y", "%d %b %Y", "%Y-%m-%d %H:%M:%S",
    ]

    value_str = str(value).strip()
    for fmt in date_formats:
        try:
            return datetime.strptime(value_str, fmt).date()
        except ValueError:
            continue
    return None


def normalize_gender(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    lookup = {g.lower(): g for g in GENDERS}
    lookup.update({"m": "Male", "f": "Female", "o": "Other"})
    return lookup.get(value.strip().lower(), value)


# ==========================================
#   SHEET PARSING
# ==========================================

def read_sheet(filename: str, contents: bytes) -> pd.DataFrame:
    """Raw grid of cells as strings, no header applied yet."""
    name = filename.lower()
    try:
        if name.endswith(".csv"):
            return pd.read_csv(io.BytesIO(contents), header=None, dtype=str)
        if name.endswith(".xlsx"):
            return pd.read_excel(io.BytesIO(contents), header=None, dtype=str, engine="openpyxl")
    except Exception as e:
        raise ValidationError(f"Error reading file: {e}")
    raise ValidationError("Invalid file format. Please upload an Excel (.xlsx) or CSV file")


def find_header_row(grid: pd.DataFrame) -> int:
    for idx in range(min(len(grid), HEADER_SCAN_ROWS)):
        cells = [str(c).lower() for c in grid.iloc[idx].tolist() if not pd.isna(c)]
        if any(keyword in cell for cell in cells for keyword in HEADER_KEYWORDS):
            return idx
    return 0


def map_columns(headers: List[Any]) -> Dict[str, int]:
    """Field name -> column index, from loosely named headers."""
    mapping: Dict[str, int] = {}
    for index, header in enumerate(headers):
        if header is None or pd.isna(header):
            continue
        h = str(header).strip().lower()
        for field, keywords in COLUMN_ALIASES:
            if any(k in h for k in keywords):
                # the first column matching a field keeps it
                mapping.setdefault(field, index)
                break
    return mapping


def split_name(first: Optional[str], last: Optional[str]):
    """A full name in the first-name column is split on its last space."""
    if first and not last and " " in first:
        parts = first.split()
        return " ".join(parts[:-1]), parts[-1]
    return first, last or "."


def _row_error(row_num: int, roll_number: Optional[str], message: str, duplicate: bool = False) -> dict:
    return {"row": row_num, "rollNumber": roll_number, "error": message, "isDuplicate": duplicate}


# ==========================================
#   MAIN BULK IMPORT ENDPOINT
# ==========================================

@router.post("/bulk-import")
async def bulk_import_students(
    file: UploadFile = File(...),
    department: str = Form(...),
    current_semester: int = Form(1, alias="currentSemester"),
    admission_year: Optional[int] = Form(None, alias="admissionYear"),
    batch: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """
    Import students from the first sheet of an uploaded file.
    Department, semester and admission year apply to every row; rows that fail
    validation or collide with an existing roll number are reported and skipped.
    """
    contents = await file.read()
    grid = read_sheet(file.filename or "", contents)
    if grid.empty:
        raise ValidationError("The uploaded file is empty")

    header_idx = find_header_row(grid)
    mapping = map_columns(grid.iloc[header_idx].tolist())

    missing = [field for field in REQUIRED_COLUMNS if field not in mapping]
    if missing:
        raise ValidationError(f"Could not detect required column(s): {', '.join(missing)}")

    existing_rolls = {r for (r,) in db.query(Student.roll_number).all()}
    seen_rolls = set()

    errors: List[Dict[str, Any]] = []
    students_to_add: List[Student] = []
    total_rows = 0

    for idx in range(header_idx + 1, len(grid)):
        row = grid.iloc[idx]
        row_num = idx + 1  # spreadsheet row number, 1-indexed

        # Skip completely empty rows
        if row.isna().all():
            continue

        def cell(field):
            return safe_str(row.iloc[mapping[field]]) if field in mapping else None

        roll_number = cell("roll_number")
        if not roll_number:
            continue
        total_rows += 1
        roll_key = roll_number.upper()

        if roll_key in existing_rolls or roll_key in seen_rolls:
            errors.append(_row_error(row_num, roll_key, "Roll number already exists", duplicate=True))
            continue

        dob = parse_date(cell("date_of_birth"))
        if dob is None:
            errors.append(_row_error(row_num, roll_key, "Missing or unreadable date of birth"))
            continue

        first_name, last_name = split_name(cell("first_name"), cell("last_name"))
        data = {
            "roll_number": roll_number,
            "first_name": first_name,
            "last_name": last_name,
            "date_of_birth": dob,
            "gender": normalize_gender(cell("gender")) or "Male",
            "department": department,
            "current_semester": current_semester,
            "admission_year": admission_year,
            "batch": cell("batch") or batch,
            "father_name": cell("father_name"),
            "mother_name": cell("mother_name"),
            "enrollment_number": cell("enrollment_number"),
            "email": cell("email"),
            "phone": cell("phone"),
        }
        category = cell("category")
        if category:
            data["category"] = category

        try:
            payload = StudentRegister(**data)
        except PydanticValidationError as e:
            messages = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
            errors.append(_row_error(row_num, roll_key, messages))
            continue

        seen_rolls.add(payload.roll_number)
        students_to_add.append(Student(
            **payload.model_dump(),
            password_hash=hash_password(default_password(payload.date_of_birth)),
            is_verified=True,
        ))

    # Bulk insert with transaction: an integrity failure imports nothing
    if students_to_add:
        db.add_all(students_to_add)
        commit_or_raise(db, "No students were imported")

    logger.info(
        "Bulk import by %s: %s imported, %s rejected from %s",
        admin.username, len(students_to_add), len(errors), file.filename,
    )
    return {
        "success": True,
        "totalRows": total_rows,
        "importedCount": len(students_to_add),
        "errorCount": len(errors),
        "errors": errors,
    }


# ==========================================
#   SAMPLE TEMPLATE
# ==========================================

@router.get("/import-template")
def get_sample_template(admin: Admin = Depends(get_current_admin)):
    """
    Returns the expected column names for the upload sheet.
    """
    return {
        "success": True,
        "requiredColumns": ["Roll No", "Student Name", "DOB"],
        "optionalColumns": [
            "Last Name",
            "Father Name",
            "Mother Name",
            "Enrollment No",
            "Email",
            "Mobile",
            "Gender",
            "Category",
            "Batch",
        ],
        "formFields": ["department", "currentSemester", "admissionYear", "batch"],
        "notes": [
            "Headers are matched loosely: any header containing 'roll' is the roll number, 'dob' or 'birth' the date of birth, and so on",
            "The header row may sit below a title block; the first 10 rows are scanned for it",
            "A full name in the name column is split into first and last name",
            "DOB should be in format: YYYY-MM-DD or DD-MM-YYYY or DD/MM/YYYY",
            "Each student's initial password is the date of birth as YYYYMMDD",
        ],
    }
