from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from models.admins import DESIGNATIONS
from schemas.common import CamelModel

Designation = Literal[DESIGNATIONS]


class AdminRegister(CamelModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    full_name: Optional[str] = None
    designation: Designation = "System Admin"


class AdminLogin(CamelModel):
    username: str
    password: str


class ChangePassword(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=128)


class AdminOut(CamelModel):
    id: int
    username: str
    full_name: Optional[str] = None
    designation: str
    is_active: bool
    last_login: Optional[datetime] = None
