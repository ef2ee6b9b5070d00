"""Turns raw list-endpoint query parameters into a `ListRequest`.

Filter keys follow a small grammar::

    key   := field | field "[" op "]"
    field := name ("." name)*
    op    := eq | ne | gt | gte | lt | lte | in

Keys that do not match the grammar, or name an operator outside the
closed set, are dropped without error.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from schoolhub.schemas.query import (
    FILTER_OPERATORS,
    RESERVED_PARAMS,
    FilterClause,
    ListRequest,
    PageSpec,
    Projection,
    SortClause,
)

_LOG = logging.getLogger(__name__)

_FILTER_KEY_RE = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)(?:\[(?P<op>[A-Za-z]*)\])?$")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

DEFAULT_PAGE_LIMIT = 25
MAX_PAGE_LIMIT = 100


def to_snake(name: str) -> str:
    return ".".join(_CAMEL_BOUNDARY_RE.sub("_", part).lower() for part in name.split("."))


def _split_csv(raw: str | None) -> list[str]:
    return [item.strip() for item in str(raw or "").split(",") if item.strip()]


def parse_filter_key(key: str) -> tuple[str, str] | None:
    match = _FILTER_KEY_RE.match(key.replace("%5B", "[").replace("%5D", "]"))
    if match is None:
        return None
    op = match.group("op")
    op = "eq" if op is None else op.lower()
    if op not in FILTER_OPERATORS:
        return None
    return to_snake(match.group("field")), op


def parse_filters(items: Iterable[tuple[str, str]]) -> list[FilterClause]:
    clauses: dict[tuple[str, str], FilterClause] = {}
    for key, value in items:
        if key in RESERVED_PARAMS:
            continue
        parsed = parse_filter_key(key)
        if parsed is None:
            _LOG.debug("dropping filter parameter %r", key)
            continue
        field, op = parsed
        existing = clauses.get((field, op))
        if op == "in":
            values = _split_csv(value)
            if existing is not None:
                values = list(existing.value) + values
            clauses[(field, op)] = FilterClause(field=field, op=op, value=values)
        else:
            # Repeated scalar keys: last one wins.
            clauses.pop((field, op), None)
            clauses[(field, op)] = FilterClause(field=field, op=op, value=value)
    return list(clauses.values())


def parse_sort(raw: str | None) -> list[SortClause]:
    result = []
    for item in _split_csv(raw):
        descending = item.startswith("-")
        name = item.lstrip("-+").strip()
        if not name:
            continue
        result.append(SortClause(field=to_snake(name), dir="desc" if descending else "asc"))
    return result


def parse_projection(raw: str | None) -> Projection:
    include: list[str] = []
    exclude: list[str] = []
    for item in _split_csv(raw):
        if item.startswith("-"):
            name = item[1:].strip()
            if name:
                exclude.append(to_snake(name))
        else:
            include.append(to_snake(item.lstrip("+")))
    if include:
        # Mixed projections resolve to the inclusion list.
        return Projection(include=include)
    return Projection(exclude=exclude)


def _parse_positive_int(raw: str | None) -> int | None:
    # Leading digits count, so "10abc" reads as 10.
    match = _LEADING_INT_RE.match(str(raw or ""))
    if match is None:
        return None
    value = int(match.group(1))
    return value if value >= 1 else None


def parse_page(raw_page: str | None, raw_limit: str | None, *, default_limit: int = DEFAULT_PAGE_LIMIT, max_limit: int = MAX_PAGE_LIMIT) -> PageSpec:
    page = _parse_positive_int(raw_page) or 1
    limit = _parse_positive_int(raw_limit) or default_limit
    return PageSpec(page=page, limit=min(limit, max_limit))


def parse_list_request(
    items: Iterable[tuple[str, str]],
    *,
    default_limit: int = DEFAULT_PAGE_LIMIT,
    max_limit: int = MAX_PAGE_LIMIT,
) -> ListRequest:
    pairs = [(str(key), str(value)) for key, value in items]
    single: dict[str, str] = {}
    for key, value in pairs:
        if key in RESERVED_PARAMS:
            single[key] = value
    search = str(single.get("search") or "").strip() or None
    return ListRequest(
        filters=parse_filters(pairs),
        search=search,
        sort=parse_sort(single.get("sort")),
        projection=parse_projection(single.get("fields")),
        page=parse_page(single.get("page"), single.get("limit"), default_limit=default_limit, max_limit=max_limit),
    )
