"""
Authentication helpers shared by the student and admin APIs.
Passwords are bcrypt hashed; sessions are stateless JWT bearer tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt as _bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from config import Settings
from database import get_db, get_settings_dep
from errors import AuthorizationError, ForbiddenError
from models.admins import Admin
from models.students import Student

http_bearer = HTTPBearer(auto_error=False)


# ─── Password helpers ─────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return _bcrypt.hashpw(password.encode("utf-8"), _bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return _bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


# ─── Token helpers ─────────────────────────────────────────────────────────────

def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str, settings: Settings) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except (JWTError, ValueError, TypeError):
        return None


def _token_payload(credentials: Optional[HTTPAuthorizationCredentials], settings: Settings, role: str) -> dict:
    if not credentials or not credentials.credentials:
        raise AuthorizationError("Not authorized, no token")

    payload = decode_token(credentials.credentials, settings)
    if payload is None:
        raise AuthorizationError("Session expired, please login again")

    if payload.get("role") != role or payload.get("sub") is None:
        raise AuthorizationError("Unauthorized role")
    return payload


# ─── Dependencies ──────────────────────────────────────────────────────────────

def get_current_student(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    settings: Settings = Depends(get_settings_dep),
    db: Session = Depends(get_db),
) -> Student:
    payload = _token_payload(credentials, settings, "student")
    student = db.get(Student, int(payload["sub"]))
    if student is None:
        raise AuthorizationError("Student record not found")
    return student


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    settings: Settings = Depends(get_settings_dep),
    db: Session = Depends(get_db),
) -> Admin:
    payload = _token_payload(credentials, settings, "admin")
    admin = db.get(Admin, int(payload["sub"]))
    if admin is None or not admin.is_active:
        raise AuthorizationError("Admin account not found or disabled")
    return admin


def require_designation(*designations: str):
    """Dependency factory: only admins holding one of `designations` pass."""

    def checker(admin: Admin = Depends(get_current_admin)) -> Admin:
        if admin.designation not in designations:
            raise ForbiddenError(f"Designation '{admin.designation}' is not allowed to perform this action")
        return admin

    return checker
