from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Sequence

from sqlalchemy.orm import Session, load_only


@dataclass(frozen=True)
class PopulateRule:
    """Read-time join: replace the id(s) at `path` with selected fields of `model`.

    `path` is a column name (`department_id`), a dotted path into a JSON
    column (`profile_data.program_id`) or a column holding a list of ids
    (`program_ids`).
    """

    path: str
    model: type
    fields: tuple[str, ...]


def serialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: serialize_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_document(row: Any, fields: Sequence[str]) -> dict[str, Any]:
    return {name: serialize_value(getattr(row, name)) for name in fields}


def _normalize_id(value: Any) -> str | None:
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError):
        return None


def _locate(document: dict[str, Any], path: str) -> tuple[dict[str, Any], str] | None:
    parts = path.split(".")
    parent: Any = document
    for key in parts[:-1]:
        if not isinstance(parent, dict):
            return None
        parent = parent.get(key)
    if not isinstance(parent, dict) or parts[-1] not in parent:
        return None
    return parent, parts[-1]


def _referenced_ids(value: Any) -> Iterable[str]:
    items = value if isinstance(value, list) else [value]
    for item in items:
        normalized = _normalize_id(item)
        if normalized:
            yield normalized


def populate_documents(db: Session, documents: list[dict[str, Any]], rules: Sequence[PopulateRule]) -> list[dict[str, Any]]:
    for rule in rules:
        slots = [slot for slot in (_locate(doc, rule.path) for doc in documents) if slot is not None]
        wanted = {ref for parent, key in slots for ref in _referenced_ids(parent[key])}
        if not wanted:
            continue
        rows = (
            db.query(rule.model)
            .options(load_only(*(getattr(rule.model, name) for name in rule.fields)))
            .filter(rule.model.id.in_([uuid.UUID(ref) for ref in wanted]))
            .all()
        )
        joined = {str(row.id): {"id": str(row.id), **row_to_document(row, rule.fields)} for row in rows}
        for parent, key in slots:
            value = parent[key]
            if isinstance(value, list):
                parent[key] = [joined.get(_normalize_id(item) or "") for item in value]
            elif value is not None:
                parent[key] = joined.get(_normalize_id(value) or "")
    return documents
