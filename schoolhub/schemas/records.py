from __future__ import annotations

import datetime
from typing import Any, Annotated, List, Literal, Optional
from uuid import UUID

from pydantic import Field, StringConstraints

from schoolhub.schemas.users import Payload

AcademicYear = Annotated[str, StringConstraints(pattern=r"^\d{4}-\d{4}$")]
AttendanceStatus = Literal["present", "absent", "late", "excused"]
RegistrationStatus = Literal["registered", "dropped", "completed", "failed", "withdrawn"]
LetterGrade = Literal["A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D+", "D", "F"]
Score = Annotated[float, Field(ge=0, le=100)]

# Registration states that must carry a final grade.
GRADED_STATUSES = frozenset({"completed", "failed"})


class AttendanceCreate(Payload):
    student_id: UUID
    course_id: UUID
    date: datetime.date
    status: AttendanceStatus
    notes: Optional[str] = None


class AttendanceUpdate(Payload):
    student_id: Optional[UUID] = None
    course_id: Optional[UUID] = None
    date: Optional[datetime.date] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


class Assignment(Payload):
    name: str = Field(min_length=1)
    score: Score
    weight: Score


class Grade(Payload):
    midterm: Optional[Score] = None
    final: Optional[Score] = None
    assignments: List[Assignment] = []
    total_score: Optional[Score] = None
    letter_grade: Optional[LetterGrade] = None

    @property
    def is_final(self) -> bool:
        return self.total_score is not None and self.letter_grade is not None


def merge_grade(current: dict[str, Any] | None, changes: dict[str, Any]) -> dict[str, Any]:
    merged = dict(current or {})
    merged.update(changes)
    return Grade.model_validate(merged).model_dump(mode="json", exclude_none=True)


class AcademicRecordCreate(Payload):
    student_id: UUID
    course_id: UUID
    semester: str = Field(min_length=1, max_length=40)
    academic_year: AcademicYear
    registration_status: RegistrationStatus = "registered"
    grade: Optional[Grade] = None


class AcademicRecordUpdate(Payload):
    student_id: Optional[UUID] = None
    course_id: Optional[UUID] = None
    semester: Optional[str] = Field(default=None, min_length=1, max_length=40)
    academic_year: Optional[AcademicYear] = None
    registration_status: Optional[RegistrationStatus] = None
    grade: Optional[dict[str, Any]] = None
