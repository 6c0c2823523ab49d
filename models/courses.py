from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from database import Base

COURSE_TYPES = ("Theory", "Practical", "Project", "Seminar")


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    course_code = Column(String(20), unique=True, index=True, nullable=False)
    course_name = Column(String(150), nullable=False)
    credits = Column(Integer, default=4)
    department = Column(String(50), nullable=False)
    semester = Column(Integer, nullable=False)
    course_type = Column(String(20), default="Theory")
    max_marks = Column(Integer, default=100)
    passing_marks = Column(Integer, default=33)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_courses_department_semester", "department", "semester"),)
