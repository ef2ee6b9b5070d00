from __future__ import annotations

from typing import Annotated, List, Literal, Optional
from uuid import UUID

from pydantic import Field, StringConstraints

from schoolhub.schemas.users import Payload

DepartmentCode = Annotated[str, StringConstraints(pattern=r"^D\d{8}$")]
ProgramCode = Annotated[str, StringConstraints(pattern=r"^P\d{8}$")]
CourseCode = Annotated[str, StringConstraints(pattern=r"^C\d{8}$")]
ClockTime = Annotated[str, StringConstraints(pattern=r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")]
Text = Annotated[str, StringConstraints(min_length=1)]

DegreeLevel = Literal["associate", "bachelor", "master", "doctoral"]
ProgramStatus = Literal["active", "deprecated", "upcoming"]
Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class DepartmentCreate(Payload):
    code: DepartmentCode
    name: Text
    description: Optional[str] = None


class DepartmentUpdate(Payload):
    code: Optional[DepartmentCode] = None
    name: Optional[Text] = None
    description: Optional[str] = None


class ProgramCreate(Payload):
    program_code: ProgramCode
    name: Text
    description: Text
    department_id: UUID
    degree_level: DegreeLevel
    credits: int = Field(ge=1)
    duration: int = Field(ge=1)
    status: ProgramStatus = "active"


class ProgramUpdate(Payload):
    program_code: Optional[ProgramCode] = None
    name: Optional[Text] = None
    description: Optional[Text] = None
    department_id: Optional[UUID] = None
    degree_level: Optional[DegreeLevel] = None
    credits: Optional[int] = Field(default=None, ge=1)
    duration: Optional[int] = Field(default=None, ge=1)
    status: Optional[ProgramStatus] = None


class CourseCreate(Payload):
    course_code: CourseCode
    title: Text
    description: Text
    credits: float = Field(ge=0, le=12)
    day_of_week: List[Weekday] = Field(min_length=1)
    start_time: ClockTime
    end_time: ClockTime
    location: Text
    program_ids: List[UUID] = Field(min_length=1)
    prerequisites: List[UUID] = []


class CourseUpdate(Payload):
    course_code: Optional[CourseCode] = None
    title: Optional[Text] = None
    description: Optional[Text] = None
    credits: Optional[float] = Field(default=None, ge=0, le=12)
    day_of_week: Optional[List[Weekday]] = Field(default=None, min_length=1)
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    location: Optional[Text] = None
    program_ids: Optional[List[UUID]] = Field(default=None, min_length=1)
    prerequisites: Optional[List[UUID]] = None


def minutes_of_day(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)
