from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from schoolhub.core.errors import ValidationFailed
from schoolhub.entities.base import SqlEntity
from schoolhub.models.academic_record import AcademicRecord
from schoolhub.models.attendance import Attendance
from schoolhub.models.course import Course
from schoolhub.models.user import User
from schoolhub.schemas.records import (
    GRADED_STATUSES,
    AcademicRecordCreate,
    AcademicRecordUpdate,
    AttendanceCreate,
    AttendanceUpdate,
    Grade,
    merge_grade,
)
from schoolhub.services.documents import PopulateRule

STUDENT_FIELDS = ("username", "first_name", "last_name", "user_id")


class AttendanceEntity(SqlEntity):
    label = "Attendance"
    model = Attendance
    create_schema = AttendanceCreate
    update_schema = AttendanceUpdate
    populate = (
        PopulateRule("student_id", User, STUDENT_FIELDS),
        PopulateRule("course_id", Course, ("course_code", "title")),
    )


def ensure_student(db: Session, student_id: uuid.UUID) -> None:
    role = db.query(User.role).filter(User.id == student_id).scalar()
    if role != "student":
        raise ValidationFailed("student_id must reference a user with role student", field="student_id")


def ensure_final_grade(registration_status: str, grade: dict[str, Any] | None) -> None:
    if registration_status not in GRADED_STATUSES:
        return
    if grade is None or not Grade.model_validate(grade).is_final:
        raise ValidationFailed(
            f"A {registration_status} registration requires a grade with total_score and letter_grade",
            field="grade",
        )


class AcademicRecordEntity(SqlEntity):
    label = "Academic record"
    model = AcademicRecord
    create_schema = AcademicRecordCreate
    update_schema = AcademicRecordUpdate
    merge_fields = frozenset({"grade"})
    populate = (
        PopulateRule("student_id", User, STUDENT_FIELDS),
        PopulateRule("course_id", Course, ("course_code", "title", "credits")),
    )

    def merge_nested(self, row: AcademicRecord, name: str, changes: dict[str, Any]) -> dict[str, Any]:
        return merge_grade(row.grade, changes)

    def before_insert(self, db: Session, values: dict[str, Any]) -> dict[str, Any]:
        ensure_student(db, values["student_id"])
        ensure_final_grade(values.get("registration_status") or "registered", values.get("grade"))
        return values

    def before_update(self, db: Session, row: AcademicRecord, changes: dict[str, Any]) -> dict[str, Any]:
        if "student_id" in changes:
            ensure_student(db, changes["student_id"])
        if "registration_status" in changes or "grade" in changes:
            ensure_final_grade(
                changes.get("registration_status", row.registration_status),
                changes.get("grade", row.grade),
            )
        return changes


attendance = AttendanceEntity()
academic_records = AcademicRecordEntity()
