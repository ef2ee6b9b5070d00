from __future__ import annotations

import re
from datetime import date
from typing import Any, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["admin", "teacher", "student"]
AccountStatus = Literal["active", "disabled"]
Gender = Literal["male", "female", "other"]
EnrollmentStatus = Literal["enrolled", "on_leave", "graduated", "withdrawn"]
TeacherStatus = Literal["active", "sabbatical", "retired", "suspended"]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class StudentProfile(Payload):
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    enrollment_status: EnrollmentStatus = "enrolled"
    department_id: UUID
    program_id: UUID
    year: int = Field(ge=1)


class TeacherProfile(Payload):
    contact_phone: str = Field(min_length=1)
    bio: Optional[str] = None
    status: TeacherStatus = "active"


class AdminProfile(Payload):
    pass


Profile = Union[StudentProfile, TeacherProfile, AdminProfile]

PROFILE_MODELS: dict[str, type[Payload]] = {
    "student": StudentProfile,
    "teacher": TeacherProfile,
    "admin": AdminProfile,
}


def profile_model(role: str) -> type[Payload]:
    return PROFILE_MODELS[role]


def parse_profile(role: str, data: dict[str, Any] | None) -> Profile:
    return profile_model(role).model_validate(data or {})


def dump_profile(profile: Profile) -> dict[str, Any]:
    return profile.model_dump(mode="json", exclude_none=True)


def merge_profile(role: str, current: dict[str, Any] | None, changes: dict[str, Any]) -> dict[str, Any]:
    """Apply `changes` key by key onto the stored profile of `role`.

    Sibling keys survive; the merged result is validated as a whole
    against the role's profile model.
    """
    merged = dict(current or {})
    merged.update(changes)
    return dump_profile(parse_profile(role, merged))


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.lower()
    if not _EMAIL_RE.match(value):
        raise ValueError(f"{value} is not a valid email address")
    return value


class UserCreate(Payload):
    username: str = Field(min_length=3, max_length=80)
    password: str = Field(min_length=6, max_length=128)
    email: str = Field(max_length=200)
    role: Role
    status: AccountStatus = "active"
    first_name: Optional[str] = Field(default=None, max_length=120)
    last_name: Optional[str] = Field(default=None, max_length=120)
    user_id: Optional[str] = None
    profile_data: Optional[dict[str, Any]] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)


class UserUpdate(Payload):
    username: Optional[str] = Field(default=None, min_length=3, max_length=80)
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)
    email: Optional[str] = Field(default=None, max_length=200)
    role: Optional[Role] = None
    status: Optional[AccountStatus] = None
    first_name: Optional[str] = Field(default=None, max_length=120)
    last_name: Optional[str] = Field(default=None, max_length=120)
    profile_data: Optional[dict[str, Any]] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)
