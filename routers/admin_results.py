"""
Cohort views over results (merit list, gazette, publication queues) plus the
bulk publish switch and the dashboard counters.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import commit_or_raise, get_db
from errors import ValidationError
from models.admins import RESULT_MANAGERS, Admin
from schemas.common import dump_many
from schemas.results import BulkPublishRequest, ResultWithStudentOut
from security import get_current_admin, require_designation
from services import lookup
from services.publication import PUBLISH, UNPUBLISH, bulk_set_published

router = APIRouter(prefix="/api/admin/results", tags=["Result Reports"])


# 1. MERIT LIST (top N by SGPA)
@router.get("/merit-list")
def merit_list(
    semester: Optional[int] = None,
    department: Optional[str] = None,
    academicYear: Optional[str] = None,
    limit: int = 10,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    results = lookup.merit_list(db, semester, department, academicYear, limit)
    return {"success": True, "count": len(results), "data": dump_many(ResultWithStudentOut, results)}


# 2. GAZETTE (full cohort by roll number)
@router.get("/gazette")
def gazette(
    semester: Optional[int] = None,
    department: Optional[str] = None,
    academicYear: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    results = lookup.gazette(db, semester, department, academicYear)
    return {"success": True, "count": len(results), "data": dump_many(ResultWithStudentOut, results)}


# 3. PUBLICATION QUEUES
@router.get("/published")
def published_results(
    semester: Optional[int] = None,
    department: Optional[str] = None,
    academicYear: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    results = lookup.partition_view(db, True, semester, department, academicYear)
    return {"success": True, "count": len(results), "data": dump_many(ResultWithStudentOut, results)}


@router.get("/unpublished")
def unpublished_results(
    semester: Optional[int] = None,
    department: Optional[str] = None,
    academicYear: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    results = lookup.partition_view(db, False, semester, department, academicYear)
    return {"success": True, "count": len(results), "data": dump_many(ResultWithStudentOut, results)}


# 4. DASHBOARD
@router.get("/stats")
def result_stats(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    counts = lookup.stats(db)
    return {
        "success": True,
        "data": {
            "totalStudents": counts["total_students"],
            "totalResults": counts["total_results"],
            "publishedResults": counts["published_results"],
            "pendingResults": counts["pending_results"],
        },
    }


@router.get("/activity")
def recent_activity(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    return {"success": True, "data": lookup.recent_activity(db)}


# 5. BULK PUBLISH / UNPUBLISH
@router.post("/publish/bulk")
def bulk_publish(
    payload: BulkPublishRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(require_designation(*RESULT_MANAGERS)),
):
    if not payload.semester or not payload.action:
        raise ValidationError("Semester and Action are required")

    action = payload.action.strip().lower()
    if action not in (PUBLISH, UNPUBLISH):
        raise ValidationError("Action must be 'publish' or 'unpublish'")

    count = bulk_set_published(
        db,
        payload.semester,
        action == PUBLISH,
        department=payload.department,
        academic_year=payload.academic_year,
    )
    commit_or_raise(db, "Bulk publication failed")

    verb = "published" if action == PUBLISH else "unpublished"
    return {"success": True, "message": f"Successfully {verb} {count} results", "count": count}
