from __future__ import annotations

import argparse
from typing import Any

from sqlalchemy.orm import Session

from schoolhub.core.config import settings
from schoolhub.db.session import Base, Database
from schoolhub.entities import courses, departments, programs, users
from schoolhub.models.course import Course
from schoolhub.models.department import Department
from schoolhub.models.program import Program
from schoolhub.models.user import User

DEPARTMENTS = [
    {"code": "D00000001", "name": "Computer Science", "description": "Software, systems and theory"},
    {"code": "D00000002", "name": "Mathematics", "description": "Pure and applied mathematics"},
]

PROGRAMS = [
    {
        "program_code": "P00000001",
        "name": "BSc Computer Science",
        "description": "Four-year undergraduate programme",
        "department": "D00000001",
        "degree_level": "bachelor",
        "credits": 240,
        "duration": 4,
    },
    {
        "program_code": "P00000002",
        "name": "MSc Applied Mathematics",
        "description": "Two-year graduate programme",
        "department": "D00000002",
        "degree_level": "master",
        "credits": 120,
        "duration": 2,
    },
]

COURSES = [
    {
        "course_code": "C00000101",
        "title": "Introduction to Programming",
        "description": "Variables, control flow and functions",
        "credits": 6,
        "day_of_week": ["Monday", "Wednesday"],
        "start_time": "09:00",
        "end_time": "10:30",
        "location": "Room 101",
        "programs": ["P00000001"],
    },
    {
        "course_code": "C00000201",
        "title": "Linear Algebra",
        "description": "Vector spaces, matrices and eigenvalues",
        "credits": 5,
        "day_of_week": ["Tuesday", "Thursday"],
        "start_time": "11:00",
        "end_time": "12:30",
        "location": "Room 204",
        "programs": ["P00000001", "P00000002"],
    },
]

SAMPLE_PASSWORD = "changeme123"


def _ensure(db: Session, entity, model, key: str, payload: dict[str, Any]) -> tuple[Any, bool]:
    row = db.query(model).filter(getattr(model, key) == payload[key]).first()
    if row is not None:
        return row, False
    return entity.insert(db, entity.validate(payload)), True


def seed(db: Session, *, students: int = 3) -> dict[str, int]:
    created = {"departments": 0, "programs": 0, "courses": 0, "users": 0}

    department_ids = {}
    for item in DEPARTMENTS:
        row, is_new = _ensure(db, departments, Department, "code", item)
        department_ids[row.code] = str(row.id)
        created["departments"] += int(is_new)

    program_ids = {}
    for item in PROGRAMS:
        payload = {k: v for k, v in item.items() if k != "department"}
        payload["department_id"] = department_ids[item["department"]]
        row, is_new = _ensure(db, programs, Program, "program_code", payload)
        program_ids[row.program_code] = str(row.id)
        created["programs"] += int(is_new)

    for item in COURSES:
        payload = {k: v for k, v in item.items() if k != "programs"}
        payload["program_ids"] = [program_ids[code] for code in item["programs"]]
        _, is_new = _ensure(db, courses, Course, "course_code", payload)
        created["courses"] += int(is_new)

    accounts = [
        {"username": "admin", "email": "admin@example.com", "role": "admin"},
        {
            "username": "teacher1",
            "email": "teacher1@example.com",
            "role": "teacher",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "profile_data": {"contact_phone": "+10000000001"},
        },
    ]
    for index in range(1, students + 1):
        accounts.append(
            {
                "username": f"student{index}",
                "email": f"student{index}@example.com",
                "role": "student",
                "first_name": "Student",
                "last_name": str(index),
                "profile_data": {
                    "department_id": department_ids["D00000001"],
                    "program_id": program_ids["P00000001"],
                    "year": 1 + (index - 1) % 4,
                },
            }
        )
    for account in accounts:
        _, is_new = _ensure(db, users, User, "username", {**account, "password": SAMPLE_PASSWORD})
        created["users"] += int(is_new)
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed sample departments, programs, courses and users.")
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    parser.add_argument("--students", type=int, default=3, help="number of sample student accounts")
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first (no migrations)")
    args = parser.parse_args()

    database = Database.from_settings(settings.model_copy(update={"DATABASE_URL": args.database_url}))
    if args.create_tables:
        Base.metadata.create_all(bind=database.engine)
    db = database.session()
    try:
        created = seed(db, students=args.students)
        total = db.query(User).count()
    finally:
        db.close()
        database.dispose()
    print(
        "seed done: "
        + ", ".join(f"{name}={count}" for name, count in created.items())
        + f", users_total={total}"
    )


if __name__ == "__main__":
    main()
