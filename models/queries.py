from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base

QUERY_STATUSES = ("Open", "In Progress", "Resolved", "Closed")


class Query(Base):
    """Help-desk ticket raised by a student and answered by an admin."""

    __tablename__ = "queries"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), default="Open", index=True)

    admin_reply = Column(Text, nullable=True)
    replied_by = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    replied_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = relationship("Student")
