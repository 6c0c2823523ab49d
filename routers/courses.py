import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import commit_or_raise, get_db
from errors import ConflictError, NotFoundError
from models.admins import Admin
from models.courses import Course
from models.results import ResultSubject
from schemas.common import dump, dump_many
from schemas.courses import CourseCreate, CourseOut, CourseUpdate
from security import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["Courses"])


def _get_course_or_404(db: Session, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


# 1. CREATE
@router.post("", status_code=201)
def create_course(payload: CourseCreate, db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    if db.query(Course).filter(Course.course_code == payload.course_code).first():
        raise ConflictError(f"Course code '{payload.course_code}' already exists")

    course = Course(**payload.model_dump())
    db.add(course)
    commit_or_raise(db, "Failed to create course")
    db.refresh(course)
    logger.info("Course %s created by %s", course.course_code, admin.username)
    return {"success": True, "data": dump(CourseOut, course)}


# 2. LIST (filter by department / semester)
@router.get("")
def list_courses(
    department: Optional[str] = None,
    semester: Optional[int] = None,
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    query = db.query(Course)
    if department:
        query = query.filter(Course.department == department)
    if semester:
        query = query.filter(Course.semester == semester)
    if active is not None:
        query = query.filter(Course.is_active.is_(active))

    courses = query.order_by(Course.semester, Course.course_code).all()
    return {"success": True, "count": len(courses), "data": dump_many(CourseOut, courses)}


# 3. UPDATE
@router.put("/{course_id}")
def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    course = _get_course_or_404(db, course_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(course, key, value)

    commit_or_raise(db, "Failed to update course")
    db.refresh(course)
    return {"success": True, "data": dump(CourseOut, course)}


# 4. DELETE
@router.delete("/{course_id}")
def delete_course(course_id: int, db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    course = _get_course_or_404(db, course_id)
    code = course.course_code
    # stored results keep their copied code and name, only the catalog link goes
    db.query(ResultSubject).filter(ResultSubject.course_id == course.id).update(
        {"course_id": None}, synchronize_session=False
    )
    db.delete(course)
    commit_or_raise(db, "Failed to delete course")
    logger.info("Course %s deleted by %s", code, admin.username)
    return {"success": True, "message": "Course removed"}
