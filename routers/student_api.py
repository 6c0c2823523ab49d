from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import Settings
from database import get_db, get_settings_dep
from errors import AuthorizationError, ValidationError
from models.students import Student
from schemas.common import dump, dump_many
from schemas.results import ResultCheckRequest, ResultOut
from schemas.students import StudentLogin, StudentOut
from security import create_access_token, get_current_student, verify_password
from services import lookup

router = APIRouter(prefix="/api", tags=["Student App APIs"])


def _public_student(student: Student) -> dict:
    return {
        "name": student.full_name,
        "rollNumber": student.roll_number,
        "department": student.department,
        "batch": student.batch,
    }


# ===========================
#     PUBLIC RESULT CHECK
# ===========================

@router.post("/results/check")
def check_result(payload: ResultCheckRequest, db: Session = Depends(get_db)):
    """Roll number + date of birth lookup. Only published results are ever returned."""
    student, results = lookup.check_result(db, payload.roll_number, payload.date_of_birth, payload.semester)
    return {
        "success": True,
        "data": {
            "student": _public_student(student),
            "results": dump_many(ResultOut, results),
        },
    }


# ===========================
#     STUDENT LOGIN
# ===========================

@router.post("/student/login")
def student_login(
    login_data: StudentLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    login_id = (login_data.identifier or login_data.roll_number or "").strip()
    if not login_id or not login_data.password:
        raise ValidationError("Please provide Roll Number/Email and Password")

    student = db.query(Student).filter(
        or_(Student.email == login_id.lower(), Student.roll_number == login_id.upper())
    ).first()

    if not student or not verify_password(login_data.password, student.password_hash):
        raise AuthorizationError("Invalid credentials")

    token = create_access_token({"sub": str(student.id), "role": "student"}, settings)
    return {"success": True, "token": token, "student": dump(StudentOut, student)}


@router.get("/student/me")
def read_profile(current_student: Student = Depends(get_current_student)):
    return {"success": True, "data": dump(StudentOut, current_student)}


# ===========================
#     MY RESULTS
# ===========================

@router.get("/results/my")
def read_my_results(
    current_student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    results = lookup.my_results(db, current_student)
    return {
        "success": True,
        "data": {
            "student": dump(StudentOut, current_student),
            "results": dump_many(ResultOut, results),
        },
    }


@router.get("/results/my/{result_id}")
def read_my_result(
    result_id: int,
    current_student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    result = lookup.my_result(db, current_student, result_id)
    return {
        "success": True,
        "data": {
            "student": dump(StudentOut, current_student),
            "result": dump(ResultOut, result),
        },
    }
