from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base

EXAM_TYPES = ("Regular", "Backlog", "Revaluation")


class Result(Base):
    __tablename__ = "results"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="SET NULL"), nullable=True, index=True)
    roll_number = Column(String(50), nullable=False, index=True)  # copy of the student's roll number
    semester = Column(Integer, nullable=False)
    academic_year = Column(String(20), nullable=False)  # Example: "2024-25"
    exam_type = Column(String(20), nullable=False, default="Regular")

    # --- PERFORMANCE ---
    sgpa = Column(Float, nullable=True)  # NULL when no subject carries credits
    cgpa = Column(Float, nullable=True)
    total_credits = Column(Integer, default=0)
    credits_earned = Column(Integer, default=0)
    total_marks = Column(Integer, default=0)
    max_marks = Column(Integer, default=0)
    percentage = Column(Float, default=0.0)
    result = Column(String(10), nullable=False)  # Pass / Fail
    remarks = Column(Text, nullable=True)

    # --- PUBLICATION ---
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    declared_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = relationship("Student", back_populates="results")
    subjects = relationship(
        "ResultSubject",
        back_populates="result",
        cascade="all, delete-orphan",
        order_by="ResultSubject.position",
    )

    __table_args__ = (
        UniqueConstraint("student_id", "semester", "academic_year", "exam_type", name="uq_result_student_term"),
        Index("ix_results_semester_published", "semester", "is_published"),
    )


class ResultSubject(Base):
    __tablename__ = "result_subjects"

    id = Column(Integer, primary_key=True, index=True)
    result_id = Column(Integer, ForeignKey("results.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    course_id = Column(Integer, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True)
    course_code = Column(String(20), nullable=False)  # may be a generated display label
    course_name = Column(String(150), nullable=False)
    credits = Column(Integer, default=0)

    internal = Column(Integer, default=0)
    external = Column(Integer, default=0)
    total = Column(Integer, default=0)
    max_marks = Column(Integer, default=100)

    grade = Column(String(5), nullable=False)  # O, A+, A, B+, B, C, D, F
    grade_point = Column(Integer, default=0)
    status = Column(String(10), nullable=False)  # Pass / Fail

    result = relationship("Result", back_populates="subjects")
    course = relationship("Course")

    @property
    def marks(self) -> dict:
        return {
            "internal": self.internal,
            "external": self.external,
            "total": self.total,
            "max_marks": self.max_marks,
        }
