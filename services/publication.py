"""
Publication gate for results.

A result is either unpublished (draft, admin-only) or published (visible to
its student and to the public roll number + DOB check). Publishing stamps
`declared_date` the first time; unpublishing leaves it in place, so a result
that is taken down and put back keeps its original declaration date.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Query, Session

from models.results import Result
from models.students import Student

logger = logging.getLogger(__name__)

PUBLISH = "publish"
UNPUBLISH = "unpublish"


def published_only(query: Query) -> Query:
    return query.filter(Result.is_published.is_(True))


def publish(result: Result, now: Optional[datetime] = None) -> Result:
    result.is_published = True
    if result.declared_date is None:
        result.declared_date = now or datetime.utcnow()
    return result


def unpublish(result: Result) -> Result:
    result.is_published = False
    return result


def toggle_publish(result: Result, now: Optional[datetime] = None) -> Result:
    if result.is_published:
        return unpublish(result)
    return publish(result, now)


def student_ids_for_department(db: Session, department: str) -> List[int]:
    return [row.id for row in db.query(Student.id).filter(Student.department == department).all()]


def bulk_set_published(
    db: Session,
    semester: int,
    publish_flag: bool,
    department: Optional[str] = None,
    academic_year: Optional[str] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Publish or unpublish every result of a cohort in one UPDATE.
    Returns the number of rows whose state actually changed.
    """
    conditions = [Result.semester == semester, Result.is_published == (not publish_flag)]
    if academic_year:
        conditions.append(Result.academic_year == academic_year)
    if department:
        student_ids = student_ids_for_department(db, department)
        if not student_ids:
            return 0
        conditions.append(Result.student_id.in_(student_ids))

    values = {"is_published": publish_flag, "updated_at": datetime.utcnow()}
    if publish_flag:
        values["declared_date"] = func.coalesce(Result.declared_date, now or datetime.utcnow())

    stmt = update(Result).where(*conditions).values(**values).execution_options(synchronize_session=False)
    modified = db.execute(stmt).rowcount or 0

    logger.info(
        "Bulk %s: semester=%s department=%s academic_year=%s -> %s results",
        PUBLISH if publish_flag else UNPUBLISH, semester, department or "*", academic_year or "*", modified,
    )
    return modified
