from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from database import Base

DESIGNATIONS = ("Principal", "System Admin", "Exam Controller", "Clerk")

# designations allowed to publish, edit and delete results
RESULT_MANAGERS = ("Principal", "System Admin", "Exam Controller")


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    full_name = Column(String(100), nullable=True)
    password_hash = Column(String(255), nullable=False)
    designation = Column(String(30), default="System Admin")
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
