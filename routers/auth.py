import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import Settings
from database import commit_or_raise, get_db, get_settings_dep
from errors import AuthorizationError, ForbiddenError
from models.admins import Admin
from schemas.admins import AdminLogin, AdminOut, AdminRegister, ChangePassword
from schemas.common import dump
from security import create_access_token, get_current_admin, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin Authentication"])


def _token_for(admin: Admin, settings: Settings) -> str:
    return create_access_token({"sub": str(admin.id), "role": "admin", "designation": admin.designation}, settings)


# 1. FIRST ADMIN (only while no admin account exists)
@router.post("/register", status_code=201)
def register_first_admin(
    payload: AdminRegister,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    if (db.query(func.count(Admin.id)).scalar() or 0) > 0:
        raise ForbiddenError("An admin already exists. Ask an existing admin to create your account.")

    admin = Admin(
        username=payload.username.strip().lower(),
        full_name=payload.full_name,
        password_hash=hash_password(payload.password),
        designation=payload.designation,
    )
    db.add(admin)
    commit_or_raise(db, "Admin registration failed")
    db.refresh(admin)
    logger.info("First admin account '%s' created", admin.username)

    return {"success": True, "token": _token_for(admin, settings), "data": dump(AdminOut, admin)}


# 2. LOGIN
@router.post("/login")
def login_admin(
    payload: AdminLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    admin = db.query(Admin).filter(Admin.username == payload.username.strip().lower()).first()
    if not admin or not admin.is_active or not verify_password(payload.password, admin.password_hash):
        raise AuthorizationError("Invalid credentials")

    admin.last_login = datetime.utcnow()
    commit_or_raise(db, "Login failed")
    return {"success": True, "token": _token_for(admin, settings), "data": dump(AdminOut, admin)}


# 3. PROFILE
@router.get("/me")
def get_me(admin: Admin = Depends(get_current_admin)):
    return {"success": True, "data": dump(AdminOut, admin)}


# 4. CHANGE PASSWORD
@router.put("/change-password")
def change_password(
    payload: ChangePassword,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    if not verify_password(payload.current_password, admin.password_hash):
        raise AuthorizationError("Current password is incorrect")

    admin.password_hash = hash_password(payload.new_password)
    commit_or_raise(db, "Password change failed")
    return {"success": True, "message": "Password updated"}
