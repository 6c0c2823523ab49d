"""
Read side of the result collection.

Student-facing and public reads always go through `published_only`; admin
listings see drafts too.
"""

import math
from typing import List, Optional, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Session, joinedload, selectinload

from errors import AuthorizationError, NotFoundError, ValidationError
from models.results import Result
from models.students import Student
from schemas.common import to_date
from services.publication import published_only, student_ids_for_department


def dob_matches(stored, supplied) -> bool:
    """Compare two dates on the calendar day only, ignoring any time of day."""
    if stored is None or supplied is None:
        return False
    try:
        return to_date(stored) == to_date(supplied)
    except ValueError:
        return False


def _with_subjects(query):
    return query.options(selectinload(Result.subjects))


# ===========================
#   STUDENT / PUBLIC
# ===========================

def check_result(db: Session, roll_number: Optional[str], date_of_birth: Optional[str], semester: Optional[int] = None) -> Tuple[Student, List[Result]]:
    if not roll_number or not roll_number.strip() or not date_of_birth:
        raise ValidationError("Please provide Roll Number and Date of Birth")

    student = db.query(Student).filter(Student.roll_number == roll_number.strip().upper()).first()
    if not student:
        raise NotFoundError("Student not found")

    if not dob_matches(student.date_of_birth, date_of_birth):
        raise AuthorizationError("Invalid Date of Birth")

    query = published_only(db.query(Result).filter(Result.student_id == student.id))
    if semester:
        query = query.filter(Result.semester == semester)

    results = _with_subjects(query).order_by(Result.semester.desc(), Result.created_at.desc()).all()
    if not results:
        raise NotFoundError("No published results found for this student")
    return student, results


def my_results(db: Session, student: Student) -> List[Result]:
    query = published_only(db.query(Result).filter(Result.student_id == student.id))
    return _with_subjects(query).order_by(Result.semester.desc(), Result.created_at.desc()).all()


def my_result(db: Session, student: Student, result_id: int) -> Result:
    result = published_only(
        db.query(Result).filter(Result.id == result_id, Result.student_id == student.id)
    ).first()
    if not result:
        raise NotFoundError("Result not found")
    return result


# ===========================
#   ADMIN
# ===========================

def get_result_or_404(db: Session, result_id: int) -> Result:
    result = db.query(Result).options(joinedload(Result.student)).filter(Result.id == result_id).first()
    if not result:
        raise NotFoundError("Result not found")
    return result


def term_taken(db: Session, student_id: int, semester: int, academic_year: str, exam_type: str, exclude_id=None) -> bool:
    """True when the student already has a result for this semester, academic year and exam type."""
    query = db.query(Result.id).filter(
        Result.student_id == student_id,
        Result.semester == semester,
        Result.academic_year == academic_year,
        Result.exam_type == exam_type,
    )
    if exclude_id is not None:
        query = query.filter(Result.id != exclude_id)
    return query.first() is not None


def list_results(db: Session, keyword: Optional[str], page: int, page_size: int) -> Tuple[List[Result], int, int]:
    query = db.query(Result)
    if keyword and keyword.strip():
        query = query.filter(Result.roll_number.ilike(f"%{keyword.strip()}%"))

    count = query.count()
    page = max(page, 1)
    results = (
        _with_subjects(query.options(joinedload(Result.student)))
        .order_by(Result.created_at.desc(), Result.id.desc())
        .offset(page_size * (page - 1))
        .limit(page_size)
        .all()
    )
    return results, page, math.ceil(count / page_size)


def _cohort(
    db: Session,
    semester: Optional[int],
    department: Optional[str],
    academic_year: Optional[str],
    published: Optional[bool],
):
    query = db.query(Result).options(joinedload(Result.student))
    if published is not None:
        query = query.filter(Result.is_published.is_(published))
    if semester:
        query = query.filter(Result.semester == semester)
    if academic_year:
        query = query.filter(Result.academic_year == academic_year)
    if department:
        # results carry no department: resolve the department's students first
        query = query.filter(Result.student_id.in_(student_ids_for_department(db, department)))
    return _with_subjects(query)


def merit_list(
    db: Session,
    semester: Optional[int],
    department: Optional[str] = None,
    academic_year: Optional[str] = None,
    limit: int = 10,
) -> List[Result]:
    if not semester:
        raise ValidationError("Semester is required")

    # SGPA desc with results lacking an SGPA last; ties broken by percentage, then roll number
    return (
        _cohort(db, semester, department, academic_year, published=True)
        .order_by(
            Result.sgpa.is_(None),
            Result.sgpa.desc(),
            Result.percentage.desc(),
            Result.roll_number.asc(),
        )
        .limit(max(limit, 1))
        .all()
    )


def gazette(db: Session, semester: Optional[int], department: Optional[str] = None, academic_year: Optional[str] = None) -> List[Result]:
    if not semester:
        raise ValidationError("Semester is required")

    results = _cohort(db, semester, department, academic_year, published=True).all()
    # sorted after loading: the roll number lives on the joined student row
    results.sort(key=lambda r: r.student.roll_number if r.student else r.roll_number)
    return results


def partition_view(
    db: Session,
    published: bool,
    semester: Optional[int] = None,
    department: Optional[str] = None,
    academic_year: Optional[str] = None,
) -> List[Result]:
    query = _cohort(db, semester, department, academic_year, published=published)
    if published:
        query = query.order_by(Result.declared_date.desc(), Result.id.desc())
    else:
        query = query.order_by(Result.created_at.desc(), Result.id.desc())
    return query.all()


def stats(db: Session) -> dict:
    total_students = db.query(func.count(Student.id)).scalar() or 0
    total_results = db.query(func.count(Result.id)).scalar() or 0
    published = db.query(func.count(Result.id)).filter(Result.is_published.is_(True)).scalar() or 0
    return {
        "total_students": total_students,
        "total_results": total_results,
        "published_results": published,
        "pending_results": total_results - published,
    }


def recent_activity(db: Session, limit: int = 5) -> List[dict]:
    """Latest publish events, one per (semester, department, academic year) batch."""
    rows = (
        db.query(
            Result.semester,
            Student.department,
            Result.academic_year,
            func.max(Result.declared_date).label("timestamp"),
            func.count(Result.id).label("count"),
        )
        .join(Student, Result.student_id == Student.id)
        .filter(Result.is_published.is_(True))
        .group_by(Result.semester, Student.department, Result.academic_year)
        .order_by(desc("timestamp"))
        .limit(limit)
        .all()
    )

    activity = []
    for row in rows:
        stamp = row.timestamp.isoformat() if row.timestamp else None
        activity.append({
            "id": f"{row.department}-{row.semester}-{row.academic_year}-{stamp}",
            "description": f"Published {row.department or 'General'} Results",
            "meta": f"Semester {row.semester} • {row.academic_year} • {row.count} Students",
            "timestamp": stamp,
            "type": "publish",
        })
    return activity