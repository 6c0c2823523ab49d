from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from models.queries import QUERY_STATUSES
from schemas.common import CamelModel
from schemas.students import StudentBrief

QueryStatus = Literal[QUERY_STATUSES]


class QueryCreate(CamelModel):
    subject: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=1000)


class QueryReply(CamelModel):
    reply: str = Field(..., min_length=1, max_length=2000)
    status: Optional[QueryStatus] = None  # defaults to Resolved


class QueryOut(CamelModel):
    id: int
    student_id: int
    subject: str
    message: str
    status: str
    admin_reply: Optional[str] = None
    replied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class QueryWithStudentOut(QueryOut):
    student: Optional[StudentBrief] = None
