from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Protocol, Sequence

from pydantic import BaseModel, ValidationError
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Session, load_only
from sqlalchemy.sql.sqltypes import JSON

from schoolhub.core.errors import MalformedIdentifier, NotFound, ValidationFailed, validation_failed_from
from schoolhub.schemas.query import ListRequest, Projection, SortClause
from schoolhub.services.documents import PopulateRule, populate_documents, row_to_document
from schoolhub.services.query_pipeline import DEFAULT_SORT, QueryResult, build_query, projected_fields


@contextmanager
def validation_errors(prefix: str = "") -> Iterator[None]:
    try:
        yield
    except ValidationError as exc:
        raise validation_failed_from(exc, prefix) from exc


class EntityDescriptor(Protocol):
    """What the CRUD handlers need from a collection."""

    label: str

    def parse_id(self, raw: str) -> uuid.UUID: ...

    def validate(self, payload: Any, *, partial: bool = False) -> dict[str, Any]: ...

    def find_many(self, db: Session, request: ListRequest) -> QueryResult: ...

    def find_by_id(self, db: Session, entity_id: uuid.UUID, projection: Projection | None = None) -> Any: ...

    def insert(self, db: Session, values: dict[str, Any]) -> Any: ...

    def update_by_id(self, db: Session, entity_id: uuid.UUID, changes: dict[str, Any]) -> Any: ...

    def delete_by_id(self, db: Session, entity_id: uuid.UUID) -> None: ...

    def count(self, db: Session, request: ListRequest | None = None) -> int: ...

    def fields_for(self, projection: Projection | None = None) -> tuple[str, ...]: ...

    def to_documents(self, db: Session, rows: Sequence[Any], fields: Sequence[str]) -> list[dict[str, Any]]: ...


class SqlEntity:
    """EntityDescriptor over one mapped model.

    Subclasses set the class attributes and override the `before_*` hooks
    for per-collection rules; everything else is shared.
    """

    label: str = "Document"
    model: type
    create_schema: type[BaseModel]
    update_schema: type[BaseModel]
    text_index: Mapping[str, int] = {}
    hidden_fields: tuple[str, ...] = ()
    # JSON columns whose updates are merged key by key into the stored value.
    merge_fields: frozenset[str] = frozenset()
    populate: tuple[PopulateRule, ...] = ()
    default_sort: tuple[SortClause, ...] = DEFAULT_SORT

    def _columns(self) -> dict[str, Any]:
        return {column.key: column for column in sa_inspect(self.model).columns}

    def _json_fields(self) -> set[str]:
        return {name for name, column in self._columns().items() if isinstance(column.type, JSON)}

    def parse_id(self, raw: str) -> uuid.UUID:
        try:
            return uuid.UUID(str(raw or "").strip())
        except ValueError:
            raise MalformedIdentifier(f"Invalid ID format: {raw}", field="id")

    def validate(self, payload: Any, *, partial: bool = False) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise ValidationFailed("Request body must be a JSON object")
        schema = self.update_schema if partial else self.create_schema
        with validation_errors():
            parsed = schema.model_validate(payload)

        values = parsed.model_dump(exclude_unset=partial)
        as_json = parsed.model_dump(mode="json", exclude_unset=partial, exclude_none=True)
        for name in self._json_fields() & values.keys():
            values[name] = as_json.get(name)

        if partial:
            columns = self._columns()
            for key, value in values.items():
                column = columns.get(key)
                if value is None and column is not None and not column.nullable:
                    raise ValidationFailed(f'Field "{key}" cannot be null', field=key)
            if not values:
                raise ValidationFailed("No fields to update")
        return values

    def base_query(self, db: Session):
        return db.query(self.model)

    def find_many(self, db: Session, request: ListRequest) -> QueryResult:
        return build_query(
            self.base_query(db),
            self.model,
            request,
            text_index=self.text_index,
            hidden_fields=self.hidden_fields,
            default_sort=self.default_sort,
        )

    def count(self, db: Session, request: ListRequest | None = None) -> int:
        return self.find_many(db, request or ListRequest()).count()

    def fields_for(self, projection: Projection | None = None) -> tuple[str, ...]:
        return projected_fields(self.model, projection or Projection(), self.hidden_fields)

    def find_by_id(self, db: Session, entity_id: uuid.UUID, projection: Projection | None = None):
        q = self.base_query(db).filter(self.model.id == entity_id)
        if projection is not None and not projection.is_empty:
            q = q.options(load_only(*(getattr(self.model, name) for name in self.fields_for(projection))))
        row = q.first()
        if row is None:
            raise NotFound(f"{self.label} not found")
        return row

    def before_insert(self, db: Session, values: dict[str, Any]) -> dict[str, Any]:
        return values

    def before_update(self, db: Session, row: Any, changes: dict[str, Any]) -> dict[str, Any]:
        return changes

    def merge_nested(self, row: Any, name: str, changes: dict[str, Any]) -> dict[str, Any]:
        merged = dict(getattr(row, name) or {})
        merged.update(changes)
        return merged

    def insert(self, db: Session, values: dict[str, Any]):
        row = self.model(**self.before_insert(db, dict(values)))
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    def update_by_id(self, db: Session, entity_id: uuid.UUID, changes: dict[str, Any]):
        row = self.find_by_id(db, entity_id)
        changes = dict(changes)
        for name in self.merge_fields & changes.keys():
            if isinstance(changes[name], dict):
                with validation_errors(name):
                    changes[name] = self.merge_nested(row, name, changes[name])
        changes = self.before_update(db, row, changes)
        for key, value in changes.items():
            setattr(row, key, value)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    def delete_by_id(self, db: Session, entity_id: uuid.UUID) -> None:
        row = self.find_by_id(db, entity_id)
        db.delete(row)
        db.commit()

    def to_documents(self, db: Session, rows: Sequence[Any], fields: Sequence[str]) -> list[dict[str, Any]]:
        documents = [row_to_document(row, fields) for row in rows]
        rules = [rule for rule in self.populate if rule.path.split(".")[0] in fields]
        return populate_documents(db, documents, rules)
