from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String
from sqlalchemy.orm import relationship

from database import Base

DEPARTMENTS = (
    "Arts", "Science", "Commerce", "Education", "Law",
    "Computer Application", "B.Ed", "B.T.C", "B.A", "LL.B",
)
PROGRAMS = ("LL.B", "D.El.Ed.(BTC)", "BA", "B.Sc", "B.Com", "B.Ed", "M.A", "M.Sc")
GENDERS = ("Male", "Female", "Other")
CATEGORIES = ("General", "OBC", "SC", "ST", "EWS")
STUDENT_STATUSES = ("Active", "Graduated", "Dropped", "Suspended")


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    roll_number = Column(String(50), unique=True, index=True, nullable=False)
    enrollment_number = Column(String(50), unique=True, nullable=True)

    # --- PERSONAL INFO ---
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    father_name = Column(String(100), nullable=True)
    mother_name = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=False)  # used for public result verification
    gender = Column(String(10), nullable=False)
    category = Column(String(20), default="General")

    # --- CONTACT ---
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(15), unique=True, nullable=True)

    # --- ACADEMIC INFO ---
    department = Column(String(50), nullable=False, index=True)
    program = Column(String(50), default="BA")
    current_semester = Column(Integer, nullable=False, default=1)
    batch = Column(String(20), nullable=True)
    admission_year = Column(Integer, nullable=True)
    status = Column(String(20), default="Active")

    # --- AUTH ---
    password_hash = Column(String(255), nullable=True)
    is_verified = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # no delete cascade: removing a student leaves its results orphaned (student_id -> NULL)
    results = relationship("Result", back_populates="student")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Student {self.roll_number} - {self.first_name}>"
