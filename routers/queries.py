"""
Help desk: students raise queries about their results, admins answer them.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from database import commit_or_raise, get_db
from errors import NotFoundError, ValidationError
from models.admins import Admin
from models.queries import QUERY_STATUSES, Query
from models.students import Student
from schemas.common import dump, dump_many
from schemas.queries import QueryCreate, QueryOut, QueryReply, QueryWithStudentOut
from security import get_current_admin, get_current_student

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/queries", tags=["Help Desk"])


# ===========================
#     STUDENT SIDE
# ===========================

@router.post("", status_code=201)
def create_query(
    payload: QueryCreate,
    db: Session = Depends(get_db),
    student: Student = Depends(get_current_student),
):
    query = Query(student_id=student.id, subject=payload.subject.strip(), message=payload.message.strip())
    db.add(query)
    commit_or_raise(db, "Failed to submit query")
    db.refresh(query)
    return {"success": True, "message": "Query submitted", "data": dump(QueryOut, query)}


@router.get("/my")
def my_queries(db: Session = Depends(get_db), student: Student = Depends(get_current_student)):
    queries = db.query(Query).filter(Query.student_id == student.id).order_by(Query.created_at.desc(), Query.id.desc()).all()
    return {"success": True, "count": len(queries), "data": dump_many(QueryOut, queries)}


# ===========================
#     ADMIN SIDE
# ===========================

@router.get("/admin/all")
def all_queries(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    query = db.query(Query).options(joinedload(Query.student))
    if status:
        if status not in QUERY_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(QUERY_STATUSES)}")
        query = query.filter(Query.status == status)

    queries = query.order_by(Query.created_at.desc(), Query.id.desc()).all()
    return {"success": True, "count": len(queries), "data": dump_many(QueryWithStudentOut, queries)}


@router.put("/{query_id}/reply")
def reply_to_query(
    query_id: int,
    payload: QueryReply,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    query = db.get(Query, query_id)
    if not query:
        raise NotFoundError("Query not found")

    query.admin_reply = payload.reply.strip()
    query.status = payload.status or "Resolved"
    query.replied_by = admin.id
    query.replied_at = datetime.utcnow()

    commit_or_raise(db, "Failed to save reply")
    db.refresh(query)
    logger.info("Query %s answered by %s (%s)", query.id, admin.username, query.status)
    return {"success": True, "message": "Reply sent", "data": dump(QueryWithStudentOut, query)}
