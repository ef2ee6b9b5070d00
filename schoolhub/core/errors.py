from __future__ import annotations

import logging
import re
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

_LOG = logging.getLogger("schoolhub.errors")

_PG_KEY_RE = re.compile(r"Key \(([^)]+)\)=")
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: ([\w.,\s]+)")


class ApiError(HTTPException):
    """Failure that is rendered in the uniform `{success: false, ...}` shape."""

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        details: list[dict[str, Any]] | None = None,
        status_code: int | None = None,
    ):
        self.message = message or self.default_message
        self.field = field
        self.details = details
        super().__init__(status_code=status_code or type(self).status_code, detail=self.message)

    def payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message}
        if self.field:
            body["field"] = self.field
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Validation failed"


class MalformedIdentifier(ApiError):
    status_code = 400
    default_message = "Invalid ID format"


class NotFound(ApiError):
    status_code = 404
    default_message = "Document not found"


class DuplicateKey(ApiError):
    status_code = 409
    default_message = "Duplicate value"


class UnclassifiedStoreError(ApiError):
    status_code = 500
    default_message = "Database operation failed"


def _location_to_field(loc: tuple[Any, ...] | list[Any]) -> str:
    parts = [str(item) for item in loc if item not in ("body", "query", "path")]
    return ".".join(parts)


def validation_failed_from(exc: ValidationError | RequestValidationError, prefix: str = "") -> ValidationFailed:
    details = []
    for error in exc.errors():
        field = _location_to_field(error.get("loc") or ())
        if prefix:
            field = f"{prefix}.{field}" if field else prefix
        details.append({"field": field, "message": str(error.get("msg") or "Invalid value")})
    first = details[0] if details else {}
    return ValidationFailed(
        str(first.get("message") or "Validation failed"),
        field=first.get("field") or None,
        details=details,
    )


def duplicate_key_field(exc: IntegrityError) -> str | None:
    text = str(getattr(exc, "orig", None) or exc)
    match = _PG_KEY_RE.search(text)
    if match:
        return match.group(1).split(",")[0].strip()
    match = _SQLITE_UNIQUE_RE.search(text)
    if match:
        first = match.group(1).split(",")[0].strip()
        return first.split(".")[-1]
    return None


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) == "23505":
        return True
    text = str(orig or exc)
    return "UNIQUE constraint failed" in text or "duplicate key value" in text


def duplicate_key_error(exc: IntegrityError) -> DuplicateKey:
    field = duplicate_key_field(exc)
    if field:
        return DuplicateKey(f"Duplicate value for {field}. Please use a different value.", field=field)
    return DuplicateKey()


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(exc.payload(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        error = validation_failed_from(exc)
        return JSONResponse(error.payload(), status_code=error.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            {"success": False, "error": str(exc.detail)},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception):
        _LOG.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(ApiError().payload(), status_code=500)
