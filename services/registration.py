import logging
from datetime import date
from typing import Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import ConflictError, NotFoundError, ValidationError
from models.students import Student
from schemas.common import to_date
from schemas.students import StudentRegister
from security import hash_password

logger = logging.getLogger(__name__)

# placeholders for students created as a side effect of manual result entry
AUTO_DEPARTMENT = "Science"
AUTO_GENDER = "Male"
AUTO_FATHER_NAME = "Not Provided"


def default_password(dob: date) -> str:
    """Initial password is the date of birth as YYYYMMDD."""
    return dob.strftime("%Y%m%d")


def split_display_name(name: Optional[str], roll_number: str) -> Tuple[str, str]:
    if not name or not name.strip():
        return "Student", roll_number
    parts = name.strip().split()
    return parts[0], " ".join(parts[1:]) or "."


def parse_dob(value) -> date:
    try:
        return to_date(value)
    except ValueError as e:
        raise ValidationError(str(e))


def find_by_roll(db: Session, roll_number: str) -> Optional[Student]:
    return db.query(Student).filter(Student.roll_number == roll_number.strip().upper()).first()


def register_student(db: Session, payload: StudentRegister) -> Student:
    duplicate_check = [Student.roll_number == payload.roll_number]
    if payload.email:
        duplicate_check.append(Student.email == payload.email)
    if payload.phone:
        duplicate_check.append(Student.phone == payload.phone)
    if payload.enrollment_number:
        duplicate_check.append(Student.enrollment_number == payload.enrollment_number)

    existing = db.query(Student).filter(or_(*duplicate_check)).first()
    if existing:
        raise ConflictError("Student with this roll number, email, phone or enrollment number already exists")

    data = payload.model_dump()
    student = Student(
        **data,
        password_hash=hash_password(default_password(payload.date_of_birth)),
        is_verified=True,
    )
    db.add(student)
    return student


def auto_student(roll_number: str, semester: int, dob: date, student_name: Optional[str] = None) -> Student:
    """Unsaved placeholder student for a roll number first seen on a result."""
    first_name, last_name = split_display_name(student_name, roll_number)
    return Student(
        roll_number=roll_number,
        first_name=first_name,
        last_name=last_name,
        father_name=AUTO_FATHER_NAME,
        date_of_birth=dob,
        password_hash=hash_password(default_password(dob)),
        department=AUTO_DEPARTMENT,
        gender=AUTO_GENDER,
        current_semester=semester,
        is_verified=True,
    )


def resolve_student(
    db: Session,
    roll_number: str,
    semester: int,
    date_of_birth: Optional[str] = None,
    student_name: Optional[str] = None,
) -> Tuple[Student, bool]:
    """
    Student for a manual result entry, registering it on the fly when the roll
    number is unknown and a date of birth was supplied.
    Returns (student, created).
    """
    roll_number = roll_number.strip().upper()
    student = find_by_roll(db, roll_number)
    if student:
        return student, False

    if not date_of_birth:
        raise NotFoundError("Student not found. Please provide Date of Birth to auto-register.")

    student = auto_student(roll_number, semester, parse_dob(date_of_birth), student_name)

    # nothing else is pending in the session yet, so a rollback here only drops this insert
    try:
        db.add(student)
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.warning("Roll number %s was registered concurrently, reusing existing record", roll_number)
        student = find_by_roll(db, roll_number)
        if student is None:
            raise ConflictError("Student registration conflict, please retry")
        return student, False

    logger.info(
        "Auto-registered student %s (%s %s) during manual result entry",
        roll_number, student.first_name, student.last_name,
    )
    return student, True
