import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings
from database import commit_or_raise, get_db, get_settings_dep
from errors import ConflictError, ServerError
from models.admins import RESULT_MANAGERS, Admin
from models.results import Result, ResultSubject
from schemas.common import dump, dump_many
from schemas.results import BulkDeleteRequest, ManualResultCreate, ResultUpdate, ResultWithStudentOut
from security import get_current_admin, require_designation
from services import aggregator, lookup, publication
from services.registration import resolve_student

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Results"])

result_manager = require_designation(*RESULT_MANAGERS)


# ===========================
#   PART 1: MANUAL ENTRY
# ===========================

@router.post("/results/manual", status_code=201)
def create_manual_result(
    payload: ManualResultCreate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    student, created = resolve_student(
        db, payload.roll_number, payload.semester, payload.date_of_birth, payload.student_name
    )

    academic_year = payload.academic_year.strip()
    if lookup.term_taken(db, student.id, payload.semester, academic_year, payload.exam_type):
        db.rollback()
        raise ConflictError(
            f"A {payload.exam_type} result for semester {payload.semester} ({academic_year}) already exists for {student.roll_number}"
        )

    result = aggregator.build_result(
        db, student, payload.semester, academic_year, payload.exam_type, payload.subjects, payload.remarks
    )
    commit_or_raise(db, "Failed to save result")
    db.refresh(result)
    logger.info("Result %s saved by %s", result.id, admin.username)

    return {
        "success": True,
        "message": "Result saved as draft",
        "studentCreated": created,
        "data": dump(ResultWithStudentOut, result),
    }


# ===========================
#   PART 2: ADMIN MANAGEMENT
# ===========================

@router.get("/admin/results")
def list_results(
    keyword: str = "",
    pageNumber: int = 1,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    admin: Admin = Depends(get_current_admin),
):
    results, page, pages = lookup.list_results(db, keyword, pageNumber, settings.default_page_size)
    return {
        "success": True,
        "data": dump_many(ResultWithStudentOut, results),
        "page": page,
        "pages": pages,
    }


@router.post("/admin/results/bulk-delete")
def bulk_delete_results(
    payload: BulkDeleteRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(result_manager),
):
    requested = list(dict.fromkeys(payload.ids))
    rows = db.query(Result.id, Result.student_id, Result.semester).filter(Result.id.in_(requested)).all()
    found = {row.id for row in rows}
    # earliest deleted semester per student, later CGPAs depend on it
    earliest = {}
    for row in rows:
        if row.student_id is not None:
            earliest[row.student_id] = min(row.semester, earliest.get(row.student_id, row.semester))

    try:
        if found:
            # subjects first: a bulk DELETE skips the ORM cascade
            db.execute(delete(ResultSubject).where(ResultSubject.result_id.in_(found)))
            db.execute(delete(Result).where(Result.id.in_(found)))
            for student_id, semester in earliest.items():
                aggregator.refresh_later_cgpa(db, student_id, semester)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise ServerError("Bulk delete failed, nothing was deleted", error=str(e))

    report = [
        {"id": result_id, "status": "deleted" if result_id in found else "not_found"}
        for result_id in requested
    ]
    logger.info("Bulk delete by %s: %s of %s results removed", admin.username, len(found), len(requested))
    return {
        "success": True,
        "message": f"{len(found)} result(s) deleted",
        "deleted": len(found),
        "data": report,
    }


@router.get("/admin/results/{result_id}")
def get_result(result_id: int, db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    return {"success": True, "data": dump(ResultWithStudentOut, lookup.get_result_or_404(db, result_id))}


@router.put("/admin/results/{result_id}")
def update_result(
    result_id: int,
    payload: ResultUpdate,
    db: Session = Depends(get_db),
    admin: Admin = Depends(result_manager),
):
    result = lookup.get_result_or_404(db, result_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("academic_year") is not None:
        result.academic_year = changes["academic_year"].strip()
    if changes.get("exam_type") is not None:
        result.exam_type = changes["exam_type"]
    if "remarks" in changes:
        result.remarks = changes["remarks"]

    if result.student_id is not None and lookup.term_taken(
        db, result.student_id, result.semester, result.academic_year, result.exam_type, exclude_id=result.id
    ):
        db.rollback()
        raise ConflictError("Another result already exists for this semester, academic year and exam type")

    if payload.subjects is not None:
        aggregator.apply_subjects(db, result, payload.subjects)
        aggregator.refresh_later_cgpa(db, result.student_id, result.semester)

    commit_or_raise(db, "Failed to update result")
    db.refresh(result)
    logger.info("Result %s updated by %s", result.id, admin.username)
    return {"success": True, "message": "Result updated", "data": dump(ResultWithStudentOut, result)}


@router.delete("/admin/results/{result_id}")
def delete_result(result_id: int, db: Session = Depends(get_db), admin: Admin = Depends(result_manager)):
    result = lookup.get_result_or_404(db, result_id)
    roll_number, semester, student_id = result.roll_number, result.semester, result.student_id
    db.delete(result)
    aggregator.refresh_later_cgpa(db, student_id, semester)
    commit_or_raise(db, "Failed to delete result")
    logger.info("Result %s (%s sem %s) deleted by %s", result_id, roll_number, semester, admin.username)
    return {"success": True, "message": "Result removed"}


@router.patch("/admin/results/{result_id}/publish")
def toggle_publish(result_id: int, db: Session = Depends(get_db), admin: Admin = Depends(result_manager)):
    result = lookup.get_result_or_404(db, result_id)
    publication.toggle_publish(result)
    commit_or_raise(db, "Failed to change publication status")
    db.refresh(result)

    state = "published" if result.is_published else "unpublished"
    logger.info("Result %s %s by %s", result.id, state, admin.username)
    return {"success": True, "message": f"Result {state}", "data": dump(ResultWithStudentOut, result)}
