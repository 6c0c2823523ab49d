"""
Result aggregation: raw per-subject marks -> subject rows + result totals.

The pure functions at the top do all the arithmetic; `build_result` and
`apply_subjects` wire them to the database (course linkage, CGPA history).
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from database import flush_or_raise
from models.courses import Course
from models.results import Result, ResultSubject
from models.students import Student
from schemas.results import SubjectInput

logger = logging.getLogger(__name__)

DEFAULT_MAX_MARKS = 100
PASS_PERCENT = 33

# (minimum percentage, grade, grade point), checked top-down
GRADE_SCALE = (
    (90, "O", 10),
    (80, "A+", 9),
    (70, "A", 8),
    (60, "B+", 7),
    (50, "B", 6),
    (40, "C", 5),
    (33, "D", 4),
)


@dataclass
class SubjectScore:
    course_code: str
    course_name: str
    internal: int
    external: int
    total: int
    max_marks: int
    credits: int
    grade: str
    grade_point: int
    status: str
    course_id: Optional[int] = None


@dataclass
class Aggregate:
    subjects: List[SubjectScore] = field(default_factory=list)
    total_marks: int = 0
    max_marks: int = 0
    percentage: float = 0.0
    result: str = "Pass"
    total_credits: int = 0
    credits_earned: int = 0
    sgpa: Optional[float] = None


def coerce_marks(value) -> int:
    """
    Marks as an int; anything unparsable counts as 0. Request schemas reject
    negative marks, so the clamp only guards internal callers.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = int(float(str(value).strip()))
    except (ValueError, TypeError, OverflowError):
        return 0
    return max(number, 0)


def coerce_max_marks(value, default: int = DEFAULT_MAX_MARKS) -> int:
    number = coerce_marks(value)
    return number if number > 0 else default


def subject_status(total: int, max_marks: int) -> str:
    # total >= 33% of max, kept in integers so 33/100 is exactly on the line
    return "Pass" if total * 100 >= PASS_PERCENT * max_marks else "Fail"


def grade_for(total: int, max_marks: int, status: str) -> Tuple[str, int]:
    if status == "Fail" or max_marks <= 0:
        return "F", 0
    percentage = total / max_marks * 100
    for minimum, grade, point in GRADE_SCALE:
        if percentage >= minimum:
            return grade, point
    return "F", 0


def fallback_course_code(name: str) -> str:
    """Display label for a subject entered without a code. Not unique; never look courses up by it."""
    prefix = name.strip()[:3].upper() or "SUB"
    return f"{prefix}{random.randint(0, 999):03d}"


def score_subject(subject: SubjectInput, course: Optional[Course] = None) -> SubjectScore:
    internal = coerce_marks(subject.marks.internal)
    external = coerce_marks(subject.marks.external)
    default_max = course.max_marks if course and course.max_marks else DEFAULT_MAX_MARKS
    max_marks = coerce_max_marks(subject.marks.max_marks, default_max)
    total = internal + external

    status = subject_status(total, max_marks)
    grade, point = grade_for(total, max_marks, status)

    if subject.credits is not None:
        credits = subject.credits
    elif course is not None:
        credits = course.credits or 0
    else:
        credits = 0

    code = subject.code.strip().upper() if subject.code and subject.code.strip() else fallback_course_code(subject.name)

    return SubjectScore(
        course_code=code,
        course_name=subject.name.strip(),
        internal=internal,
        external=external,
        total=total,
        max_marks=max_marks,
        credits=credits,
        grade=grade,
        grade_point=point,
        status=status,
        course_id=course.id if course else None,
    )


def aggregate(scores: Iterable[SubjectScore]) -> Aggregate:
    agg = Aggregate()
    grade_points = 0

    for score in scores:
        agg.subjects.append(score)
        agg.total_marks += score.total
        agg.max_marks += score.max_marks
        agg.total_credits += score.credits
        grade_points += score.grade_point * score.credits
        if score.status == "Pass":
            agg.credits_earned += score.credits
        else:
            agg.result = "Fail"

    agg.percentage = round(agg.total_marks / agg.max_marks * 100, 2) if agg.max_marks > 0 else 0.0
    agg.sgpa = round(grade_points / agg.total_credits, 2) if agg.total_credits > 0 else None
    return agg


def cumulative_gpa(history: Iterable[Tuple[Optional[float], int]]) -> Optional[float]:
    """Credit-weighted mean of (sgpa, credits) pairs; entries without credits are skipped."""
    points = 0.0
    credits = 0
    for sgpa, term_credits in history:
        if sgpa is None or not term_credits:
            continue
        points += sgpa * term_credits
        credits += term_credits
    return round(points / credits, 2) if credits > 0 else None


# ===========================
#   DATABASE WIRING
# ===========================

def _courses_by_code(db: Session, subjects: List[SubjectInput]) -> Dict[str, Course]:
    codes = {s.code.strip().upper() for s in subjects if s.code and s.code.strip()}
    if not codes:
        return {}
    courses = db.query(Course).filter(Course.course_code.in_(codes)).all()
    return {c.course_code: c for c in courses}


def score_subjects(db: Session, subjects: List[SubjectInput]) -> Aggregate:
    courses = _courses_by_code(db, subjects)
    scores = []
    for subject in subjects:
        code = subject.code.strip().upper() if subject.code and subject.code.strip() else None
        scores.append(score_subject(subject, courses.get(code) if code else None))
    return aggregate(scores)


def _history_for(db: Session, student_id: Optional[int], semester: int, exclude_id: Optional[int]) -> List[Tuple[Optional[float], int]]:
    """Latest result of every earlier semester of the student."""
    if student_id is None:
        return []
    query = db.query(Result).filter(Result.student_id == student_id, Result.semester < semester)
    if exclude_id is not None:
        query = query.filter(Result.id != exclude_id)

    latest: Dict[int, Result] = {}
    for r in query.order_by(Result.created_at.asc(), Result.id.asc()).all():
        latest[r.semester] = r
    return [(r.sgpa, r.total_credits or 0) for r in latest.values()]


def refresh_later_cgpa(db: Session, student_id: Optional[int], semester: int) -> int:
    """
    Recompute the CGPA of the student's results after `semester`.
    Call whenever a result of `semester` is created, rescored or deleted; the
    change is flushed first so the history queries see it. Returns how many
    results were touched.
    """
    if student_id is None:
        return 0
    flush_or_raise(db, "Failed to save result")
    later = (
        db.query(Result)
        .filter(Result.student_id == student_id, Result.semester > semester)
        .order_by(Result.semester.asc(), Result.id.asc())
        .all()
    )
    for r in later:
        history = _history_for(db, student_id, r.semester, r.id)
        history.append((r.sgpa, r.total_credits or 0))
        r.cgpa = cumulative_gpa(history)
    if later:
        logger.info("Refreshed CGPA of %s later result(s) for student %s", len(later), student_id)
    return len(later)


def apply_subjects(db: Session, result: Result, subjects: List[SubjectInput]) -> Result:
    """(Re)compute every derived field of `result` from raw subject input."""
    agg = score_subjects(db, subjects)

    result.subjects = [
        ResultSubject(
            position=i,
            course_id=s.course_id,
            course_code=s.course_code,
            course_name=s.course_name,
            credits=s.credits,
            internal=s.internal,
            external=s.external,
            total=s.total,
            max_marks=s.max_marks,
            grade=s.grade,
            grade_point=s.grade_point,
            status=s.status,
        )
        for i, s in enumerate(agg.subjects)
    ]
    result.total_marks = agg.total_marks
    result.max_marks = agg.max_marks
    result.percentage = agg.percentage
    result.result = agg.result
    result.total_credits = agg.total_credits
    result.credits_earned = agg.credits_earned
    result.sgpa = agg.sgpa

    history = _history_for(db, result.student_id, result.semester, result.id)
    history.append((agg.sgpa, agg.total_credits))
    result.cgpa = cumulative_gpa(history)
    return result


def build_result(
    db: Session,
    student: Student,
    semester: int,
    academic_year: str,
    exam_type: str,
    subjects: List[SubjectInput],
    remarks: Optional[str] = None,
) -> Result:
    """New, unpublished result for `student`. Added to the session, not committed."""
    result = Result(
        student_id=student.id,
        roll_number=student.roll_number,
        semester=semester,
        academic_year=academic_year.strip(),
        exam_type=exam_type,
        remarks=remarks,
        is_published=False,
    )
    apply_subjects(db, result, subjects)
    db.add(result)
    refresh_later_cgpa(db, student.id, semester)
    logger.info(
        "Computed result for %s sem %s (%s): %s/%s = %s%% -> %s",
        student.roll_number, semester, academic_year, result.total_marks, result.max_marks,
        result.percentage, result.result,
    )
    return result
