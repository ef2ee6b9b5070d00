from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schoolhub.core.config import settings
from schoolhub.core.errors import ValidationFailed, duplicate_key_field
from schoolhub.core.passwords import hash_password
from schoolhub.entities.base import SqlEntity, validation_errors
from schoolhub.models.department import Department
from schoolhub.models.program import Program
from schoolhub.models.user import User
from schoolhub.schemas.users import UserCreate, UserUpdate, dump_profile, merge_profile, parse_profile
from schoolhub.services.documents import PopulateRule
from schoolhub.services.user_ids import generate_user_id, role_prefix, validate_user_id

_LOG = logging.getLogger(__name__)


def _profile_for(role: str, data: dict[str, Any] | None) -> dict[str, Any] | None:
    with validation_errors("profile_data"):
        profile = dump_profile(parse_profile(role, data))
    return profile or None


class UserEntity(SqlEntity):
    label = "User"
    model = User
    create_schema = UserCreate
    update_schema = UserUpdate
    text_index = {"username": 10, "user_id": 8, "first_name": 5, "last_name": 5, "email": 3}
    hidden_fields = ("password_hash",)
    populate = (
        PopulateRule("profile_data.department_id", Department, ("name", "code")),
        PopulateRule("profile_data.program_id", Program, ("name", "program_code")),
    )

    def before_insert(self, db: Session, values: dict[str, Any]) -> dict[str, Any]:
        role = values["role"]
        user_id = values.get("user_id")
        if user_id and (not validate_user_id(user_id) or user_id[0] != role_prefix(role)):
            raise ValidationFailed(f"Invalid user id {user_id} for role {role}", field="user_id")
        values["password_hash"] = hash_password(values.pop("password"))
        values["profile_data"] = _profile_for(role, values.get("profile_data"))
        return values

    def before_update(self, db: Session, row: User, changes: dict[str, Any]) -> dict[str, Any]:
        if "password" in changes:
            password = changes.pop("password")
            if password is None:
                raise ValidationFailed('Field "password" cannot be null', field="password")
            changes["password_hash"] = hash_password(password)

        role = changes.get("role") or row.role
        if role != row.role:
            # A new role means a new profile variant; nothing to merge into.
            changes["profile_data"] = _profile_for(role, changes.get("profile_data"))
        elif "profile_data" in changes:
            incoming = changes["profile_data"]
            if incoming is None:
                changes["profile_data"] = _profile_for(role, None)
            else:
                with validation_errors("profile_data"):
                    changes["profile_data"] = merge_profile(role, row.profile_data, incoming) or None
        return changes

    def insert(self, db: Session, values: dict[str, Any]) -> User:
        if values.get("user_id"):
            return super().insert(db, values)

        attempts = max(1, settings.USER_ID_MAX_ATTEMPTS)
        attempt = 1
        while True:
            candidate = generate_user_id(values["role"], db)
            try:
                return super().insert(db, {**values, "user_id": candidate})
            except IntegrityError as exc:
                db.rollback()
                if attempt >= attempts or duplicate_key_field(exc) != "user_id":
                    raise
                _LOG.warning("user id %s already taken, regenerating (attempt %s/%s)", candidate, attempt, attempts)
                attempt += 1


users = UserEntity()
