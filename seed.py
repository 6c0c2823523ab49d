"""
Seed the course catalog and the first admin account.

    python seed.py

The admin password comes from SEED_ADMIN_PASSWORD (default "admin123");
change it after the first login.
"""

import os

from config import get_settings
from database import build_context, init_db
from models.admins import Admin
from models.courses import Course
from security import hash_password

COURSES = [
    # code, name, credits, department, semester, type
    ("BSC101", "Physics I", 4, "Science", 1, "Theory"),
    ("BSC102", "Chemistry I", 4, "Science", 1, "Theory"),
    ("BSC103", "Mathematics I", 4, "Science", 1, "Theory"),
    ("BSC104", "Physics Lab I", 2, "Science", 1, "Practical"),
    ("BSC201", "Physics II", 4, "Science", 2, "Theory"),
    ("BSC202", "Chemistry II", 4, "Science", 2, "Theory"),
    ("BSC203", "Mathematics II", 4, "Science", 2, "Theory"),
    ("BA101", "Hindi Literature", 4, "Arts", 1, "Theory"),
    ("BA102", "English Literature", 4, "Arts", 1, "Theory"),
    ("BA103", "History of India", 4, "Arts", 1, "Theory"),
    ("BA104", "Political Science", 4, "Arts", 1, "Theory"),
    ("BCOM101", "Financial Accounting", 4, "Commerce", 1, "Theory"),
    ("BCOM102", "Business Economics", 4, "Commerce", 1, "Theory"),
    ("BCOM103", "Business Law", 3, "Commerce", 1, "Theory"),
    ("BCA101", "Programming in C", 4, "Computer Application", 1, "Theory"),
    ("BCA102", "Programming Lab", 2, "Computer Application", 1, "Practical"),
]


def seed_data(db):
    print("🌱 Seeding course catalog...")

    # 1. COURSES
    for code, name, credits, department, semester, course_type in COURSES:
        exists = db.query(Course).filter_by(course_code=code).first()
        if not exists:
            db.add(Course(
                course_code=code,
                course_name=name,
                credits=credits,
                department=department,
                semester=semester,
                course_type=course_type,
            ))
            print(f"✅ Added: {code} {name}")
        else:
            print(f"ℹ️  Exists: {code}")
    db.commit()

    # 2. FIRST ADMIN
    username = os.getenv("SEED_ADMIN_USERNAME", "admin")
    exists = db.query(Admin).filter_by(username=username).first()
    if not exists:
        db.add(Admin(
            username=username,
            full_name="System Administrator",
            password_hash=hash_password(os.getenv("SEED_ADMIN_PASSWORD", "admin123")),
            designation="System Admin",
        ))
        db.commit()
        print(f"👤 Admin '{username}' created")
    else:
        print(f"ℹ️  Admin '{username}' exists")

    print("🎉 Seeding complete!")


if __name__ == "__main__":
    context = build_context(get_settings())
    init_db(context)
    db = context.session_factory()
    try:
        seed_data(db)
    finally:
        db.close()
