import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from config import Settings
from database import commit_or_raise, get_db, get_settings_dep
from errors import NotFoundError, ValidationError
from models.admins import Admin
from models.queries import Query
from models.students import Student
from schemas.common import dump, dump_many
from schemas.students import PromoteRequest, StudentOut, StudentRegister, StudentUpdate
from security import get_current_admin
from services.registration import find_by_roll, register_student

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/students", tags=["Students"])


def _get_student_or_404(db: Session, student_id: int) -> Student:
    student = db.get(Student, student_id)
    if not student:
        raise NotFoundError("Student not found")
    return student


# ===============================
#   1. SPECIFIC ROUTES (before /{id})
# ===============================

@router.post("/register", status_code=201)
def add_student(
    payload: StudentRegister,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    student = register_student(db, payload)
    commit_or_raise(db, "Student registration failed")
    db.refresh(student)
    logger.info("Student %s registered by %s", student.roll_number, admin.username)
    return {"success": True, "message": "Student registered", "data": dump(StudentOut, student)}


@router.post("/promote")
def promote_students(
    payload: PromoteRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """Move every active student of a department from one semester to another."""
    if payload.current_semester == payload.target_semester:
        raise ValidationError("Target semester must differ from the current semester")

    students = db.query(Student).filter(
        Student.department == payload.department,
        Student.current_semester == payload.current_semester,
        Student.status == "Active",
    ).all()

    if not students:
        raise NotFoundError("No active students found for this department and semester")

    for student in students:
        student.current_semester = payload.target_semester

    commit_or_raise(db, "Promotion failed")
    logger.info(
        "Promoted %s %s students from semester %s to %s",
        len(students), payload.department, payload.current_semester, payload.target_semester,
    )
    return {
        "success": True,
        "promotedCount": len(students),
        "message": f"Successfully promoted {len(students)} students to semester {payload.target_semester}",
    }


@router.get("/stats/overview")
def student_stats(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    """Headcounts overall, by status, by department and by current semester."""
    total = db.query(func.count(Student.id)).scalar() or 0

    def counts(column):
        rows = db.query(column, func.count(Student.id)).group_by(column).order_by(column).all()
        return [{"name": name, "count": count} for name, count in rows]

    by_status = counts(Student.status)
    return {
        "success": True,
        "data": {
            "totalStudents": total,
            "activeStudents": sum(r["count"] for r in by_status if r["name"] == "Active"),
            "byStatus": by_status,
            "byDepartment": counts(Student.department),
            "bySemester": [{"semester": r["name"], "count": r["count"]} for r in counts(Student.current_semester)],
        },
    }


@router.get("/roll/{roll_number}")
def get_student_by_roll(roll_number: str, db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    student = find_by_roll(db, roll_number)
    if not student:
        raise NotFoundError("Student not found with this roll number")
    return {"success": True, "data": dump(StudentOut, student)}


@router.get("")
def list_students(
    department: Optional[str] = None,
    semester: Optional[int] = None,
    status: Optional[str] = None,
    search: str = "",
    pageNumber: int = 1,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    admin: Admin = Depends(get_current_admin),
):
    query = db.query(Student)

    if department:
        query = query.filter(Student.department == department)
    if semester:
        query = query.filter(Student.current_semester == semester)
    if status:
        query = query.filter(Student.status == status)

    if search and search.strip():
        search_fmt = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Student.roll_number.ilike(search_fmt),
                Student.first_name.ilike(search_fmt),
                Student.last_name.ilike(search_fmt),
                Student.email.ilike(search_fmt),
            )
        )

    page_size = settings.default_page_size
    page = max(pageNumber, 1)
    count = query.count()
    students = query.order_by(Student.roll_number).offset(page_size * (page - 1)).limit(page_size).all()

    return {
        "success": True,
        "data": dump_many(StudentOut, students),
        "page": page,
        "pages": math.ceil(count / page_size),
        "total": count,
    }


# ===============================
#   2. STUDENT CRUD
# ===============================

@router.get("/{student_id}")
def get_student(student_id: int, db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    return {"success": True, "data": dump(StudentOut, _get_student_or_404(db, student_id))}


@router.put("/{student_id}")
def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    student = _get_student_or_404(db, student_id)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if key in ("father_name", "mother_name") and value:
            value = value.strip().upper()
        setattr(student, key, value)

    commit_or_raise(db, "Student update failed")
    db.refresh(student)
    return {"success": True, "message": "Student updated", "data": dump(StudentOut, student)}


@router.delete("/{student_id}")
def delete_student(student_id: int, db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    """Remove a student. Its results stay behind with no student attached; its help desk tickets go with it."""
    student = _get_student_or_404(db, student_id)
    roll_number = student.roll_number

    db.query(Query).filter(Query.student_id == student.id).delete(synchronize_session=False)
    db.delete(student)
    commit_or_raise(db, "Student deletion failed")

    logger.info("Student %s deleted by %s", roll_number, admin.username)
    return {"success": True, "message": f"Student '{roll_number}' has been deleted"}
