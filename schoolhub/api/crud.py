from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from schoolhub.core.config import settings
from schoolhub.core.errors import (
    ApiError,
    UnclassifiedStoreError,
    ValidationFailed,
    duplicate_key_error,
    is_unique_violation,
)
from schoolhub.db.session import get_db
from schoolhub.entities.base import EntityDescriptor
from schoolhub.services.query_params import parse_list_request, parse_projection
from schoolhub.services.query_pipeline import pagination_metadata

_LOG = logging.getLogger(__name__)


@contextmanager
def store_errors(db: Session, action: str, label: str) -> Iterator[None]:
    """Roll back and translate store failures raised inside the block."""
    try:
        yield
    except ApiError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        if is_unique_violation(exc):
            raise duplicate_key_error(exc) from exc
        _LOG.warning("%s %s rejected by the store: %s", label, action, exc.orig)
        raise ValidationFailed("Data violates a store constraint") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        _LOG.exception("%s %s failed", label, action)
        raise UnclassifiedStoreError() from exc


class CrudHandlers:
    """list/get/create/update/delete for one entity, in the `{success, ...}` shape."""

    def __init__(self, entity: EntityDescriptor):
        self.entity = entity
        self.label = entity.label

    def _document(self, db: Session, row: Any, fields=None) -> dict[str, Any]:
        return self.entity.to_documents(db, [row], fields or self.entity.fields_for())[0]

    def list_all(self, request: Request, db: Session = Depends(get_db)):
        list_request = parse_list_request(
            request.query_params.multi_items(),
            default_limit=settings.DEFAULT_PAGE_LIMIT,
            max_limit=settings.MAX_PAGE_LIMIT,
        )
        with store_errors(db, "list", self.label):
            result = self.entity.find_many(db, list_request)
            rows = result.query.all()
            total = result.count()
            items = self.entity.to_documents(db, rows, result.fields)
        return {
            "success": True,
            "data": items,
            "count": len(items),
            "pagination": pagination_metadata(total, list_request.page).as_payload(),
        }

    def get_one(self, entity_id: str, fields: str | None = None, db: Session = Depends(get_db)):
        key = self.entity.parse_id(entity_id)
        projection = parse_projection(fields)
        with store_errors(db, "read", self.label):
            row = self.entity.find_by_id(db, key, projection)
            document = self._document(db, row, self.entity.fields_for(projection))
        return {"success": True, "data": document}

    def create_one(self, payload: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
        values = self.entity.validate(payload)
        with store_errors(db, "create", self.label):
            row = self.entity.insert(db, values)
            document = self._document(db, row)
        return {"success": True, "data": document, "message": f"{self.label} created successfully"}

    def update_one(self, entity_id: str, payload: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
        key = self.entity.parse_id(entity_id)
        changes = self.entity.validate(payload, partial=True)
        with store_errors(db, "update", self.label):
            row = self.entity.update_by_id(db, key, changes)
            document = self._document(db, row)
        return {"success": True, "data": document, "message": f"{self.label} updated successfully"}

    def delete_one(self, entity_id: str, db: Session = Depends(get_db)):
        key = self.entity.parse_id(entity_id)
        with store_errors(db, "delete", self.label):
            self.entity.delete_by_id(db, key)
        return {"success": True, "message": f"{self.label} deleted successfully"}


def build_crud_router(entity: EntityDescriptor, prefix: str, *, tags: list[str] | None = None) -> APIRouter:
    handlers = CrudHandlers(entity)
    router = APIRouter(prefix=prefix, tags=tags or [entity.label])
    router.add_api_route("", handlers.list_all, methods=["GET"])
    router.add_api_route("", handlers.create_one, methods=["POST"], status_code=201)
    router.add_api_route("/{entity_id}", handlers.get_one, methods=["GET"])
    router.add_api_route("/{entity_id}", handlers.update_one, methods=["PUT"])
    router.add_api_route("/{entity_id}", handlers.update_one, methods=["PATCH"])
    router.add_api_route("/{entity_id}", handlers.delete_one, methods=["DELETE"])
    return router
