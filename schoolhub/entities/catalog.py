from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from schoolhub.core.errors import ValidationFailed
from schoolhub.entities.base import SqlEntity
from schoolhub.models.course import Course
from schoolhub.models.department import Department
from schoolhub.models.program import Program
from schoolhub.schemas.catalog import (
    CourseCreate,
    CourseUpdate,
    DepartmentCreate,
    DepartmentUpdate,
    ProgramCreate,
    ProgramUpdate,
    minutes_of_day,
)
from schoolhub.services.documents import PopulateRule


class DepartmentEntity(SqlEntity):
    label = "Department"
    model = Department
    create_schema = DepartmentCreate
    update_schema = DepartmentUpdate
    text_index = {"name": 10, "code": 5, "description": 1}


class ProgramEntity(SqlEntity):
    label = "Program"
    model = Program
    create_schema = ProgramCreate
    update_schema = ProgramUpdate
    text_index = {"name": 10, "program_code": 5, "description": 1}
    populate = (PopulateRule("department_id", Department, ("name", "code")),)


def _check_schedule(start_time: str, end_time: str) -> None:
    if minutes_of_day(end_time) <= minutes_of_day(start_time):
        raise ValidationFailed("End time must be after start time", field="end_time")


class CourseEntity(SqlEntity):
    label = "Course"
    model = Course
    create_schema = CourseCreate
    update_schema = CourseUpdate
    text_index = {"course_code": 10, "title": 8, "description": 3, "location": 1}
    populate = (PopulateRule("program_ids", Program, ("name", "program_code")),)

    def before_insert(self, db: Session, values: dict[str, Any]) -> dict[str, Any]:
        _check_schedule(values["start_time"], values["end_time"])
        return values

    def before_update(self, db: Session, row: Course, changes: dict[str, Any]) -> dict[str, Any]:
        if "start_time" in changes or "end_time" in changes:
            _check_schedule(changes.get("start_time", row.start_time), changes.get("end_time", row.end_time))
        return changes


departments = DepartmentEntity()
programs = ProgramEntity()
courses = CourseEntity()
