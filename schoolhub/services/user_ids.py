"""Role-prefixed user identifiers with a check digit.

Format: prefix (A admin, T teacher, S student) + 6-digit sequence per
prefix + 1 Luhn-style checksum digit, e.g. ``S0000018``.
"""
from __future__ import annotations

import re

from sqlalchemy import func
from sqlalchemy.orm import Session

from schoolhub.core.errors import DuplicateKey
from schoolhub.models.user import User

ROLE_PREFIXES = {"admin": "A", "teacher": "T", "student": "S"}
PREFIX_SEEDS = {"A": 1, "T": 20, "S": 19}
SEQUENCE_DIGITS = 6
MAX_SEQUENCE = 10**SEQUENCE_DIGITS - 1


def role_prefix(role: str) -> str:
    return ROLE_PREFIXES.get(str(role or "").strip().lower(), "S")


def calculate_checksum(id_without_checksum: str) -> str:
    prefix = id_without_checksum[:1]
    digits = [int(ch) for ch in id_without_checksum[1:]]
    total = PREFIX_SEEDS.get(prefix, 0)
    for index, digit in enumerate(digits):
        # Double every second digit counting from the right, rightmost included.
        if (len(digits) - index) % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return str((10 - total % 10) % 10)


def validate_user_id(user_id: str | None) -> bool:
    if not user_id or len(user_id) < 2:
        return False
    if user_id[0] not in PREFIX_SEEDS:
        return False
    body = user_id[:-1]
    sequence = body[1:]
    if sequence and not (sequence.isascii() and sequence.isdigit()):
        return False
    return calculate_checksum(body) == user_id[-1]


def user_id_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{prefix}\d{{{SEQUENCE_DIGITS + 1}}}$")


def highest_user_id(db: Session, prefix: str) -> str | None:
    pattern = user_id_pattern(prefix)
    candidates = (
        db.query(User.user_id)
        .filter(User.user_id.like(f"{prefix}%"), func.length(User.user_id) == SEQUENCE_DIGITS + 2)
        .order_by(User.user_id.desc())
    )
    for (value,) in candidates:
        if pattern.match(value or ""):
            return value
    return None


def generate_user_id(role: str, db: Session) -> str:
    """Next id for `role`, read from the current highest one.

    Not atomic: two concurrent callers can compute the same id. The unique
    constraint on users.user_id rejects the second insert and the caller
    regenerates.
    """
    prefix = role_prefix(role)
    highest = highest_user_id(db, prefix)
    sequence = int(highest[1 : SEQUENCE_DIGITS + 1]) + 1 if highest else 1
    if sequence > MAX_SEQUENCE:
        raise DuplicateKey(f"No user ids left for prefix {prefix}", field="user_id")
    id_without_checksum = f"{prefix}{sequence:0{SEQUENCE_DIGITS}d}"
    return f"{id_without_checksum}{calculate_checksum(id_without_checksum)}"
