"""Filter -> search -> sort -> projection -> pagination over an ORM query.

Every stage narrows or reshapes the query without executing it; the caller
runs `QueryResult.query` for the page and `QueryResult.count()` for the
total. The count re-runs the filter and search predicate only, so under
concurrent writes it may disagree with the page by a few documents.
"""
from __future__ import annotations

import logging
import math
import operator
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from functools import reduce
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy import and_, asc, case, cast, desc, false, func, or_, select, true
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Query, load_only
from sqlalchemy.sql.sqltypes import JSON

from schoolhub.schemas.query import FilterClause, ListRequest, PageSpec, PaginationMeta, Projection, SortClause

_LOG = logging.getLogger(__name__)

DEFAULT_SORT = (SortClause(field="created_at", dir="desc"),)
RELEVANCE_SORT_KEY = "relevance"

_COMPARATORS: dict[str, Callable[[Any, Any], Any]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


class _Unmatchable:
    def __repr__(self) -> str:
        return "UNMATCHABLE"


# A filter value that cannot be compared with the column's type.
UNMATCHABLE = _Unmatchable()


@dataclass
class QueryResult:
    query: Query
    count: Callable[[], int]
    fields: tuple[str, ...]
    request: ListRequest


def _parse_finite_number(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        text = str(value or "").strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _coerce_number_filter_value(value, python_type):
    number = _parse_finite_number(value)
    if number is None:
        return UNMATCHABLE
    if python_type is int and number.is_integer():
        return int(number)
    if python_type is Decimal:
        return Decimal(str(number))
    return number


def _coerce_date_filter_value(value):
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    if not text:
        return UNMATCHABLE
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        return UNMATCHABLE


def _coerce_datetime_filter_value(value):
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value or "").strip()
        if not text:
            return UNMATCHABLE
        try:
            if "T" not in text and " " not in text and len(text) == 10:
                # Date-only literal against a timestamp column -> start of that day.
                parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return UNMATCHABLE
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _column_python_type(column):
    try:
        return column.property.columns[0].type.python_type
    except Exception:
        return None


def coerce_filter_value(column, value):
    """Coerce a raw query-string value to the column's type.

    Never raises: values that do not fit the column come back as
    `UNMATCHABLE`.
    """
    python_type = _column_python_type(column)
    if python_type is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value or "").strip())
        except ValueError:
            return UNMATCHABLE
    if python_type in {int, float, Decimal}:
        return _coerce_number_filter_value(value, python_type)
    if python_type is datetime:
        return _coerce_datetime_filter_value(value)
    if python_type is date:
        return _coerce_date_filter_value(value)
    return value


def _is_date_only_filter_literal(raw_value) -> bool:
    if isinstance(raw_value, date) and not isinstance(raw_value, datetime):
        return True
    if not isinstance(raw_value, str):
        return False
    text = raw_value.strip()
    if not text or "T" in text or " " in text:
        return False
    try:
        date.fromisoformat(text)
        return True
    except ValueError:
        return False


def _columns_map(model) -> dict[str, Any]:
    mapper = sa_inspect(model)
    return {column.key: column for column in mapper.columns}


def _dialect_name(q: Query) -> str:
    return q.session.get_bind().dialect.name


def _field_target(model, field: str, hidden_fields: Sequence[str] = ()):
    """Return (attribute, json_path) for a filter or sort field, or None if unknown."""
    head, _, rest = field.partition(".")
    if head in hidden_fields:
        return None
    columns = _columns_map(model)
    column = columns.get(head)
    if column is None:
        return None
    attr = getattr(model, head)
    if not rest:
        return attr, ()
    if not isinstance(column.type, JSON):
        return None
    return attr, tuple(rest.split("."))


def _is_json_column(attr) -> bool:
    return isinstance(attr.property.columns[0].type, JSON)


def _is_json_list(attr) -> bool:
    return bool(attr.property.columns[0].info.get("json_list"))


def _unmatchable_clause(op: str):
    # Mirrors a typed document store: a value of the wrong type equals
    # nothing, so only "ne" matches every document.
    return true() if op == "ne" else false()


def _ne_clause(expr, value):
    return or_(expr != value, expr.is_(None))


def _column_clause(attr, f: FilterClause):
    if f.op == "in":
        values = [coerce_filter_value(attr, item) for item in f.value]
        values = [item for item in values if item is not UNMATCHABLE]
        if not values:
            return false()
        return attr.in_(values)

    if _column_python_type(attr) is datetime and f.op in {"eq", "ne"} and _is_date_only_filter_literal(f.value):
        day_start = coerce_filter_value(attr, f.value)
        day_expr = and_(attr >= day_start, attr < day_start + timedelta(days=1))
        return day_expr if f.op == "eq" else or_(~day_expr, attr.is_(None))

    value = coerce_filter_value(attr, f.value)
    if value is UNMATCHABLE:
        return _unmatchable_clause(f.op)
    if f.op == "ne":
        return _ne_clause(attr, value)
    return _COMPARATORS[f.op](attr, value)


def _json_path_clause(attr, path: tuple[str, ...], f: FilterClause):
    element = attr[path] if len(path) > 1 else attr[path[0]]
    raw_values = list(f.value) if f.op == "in" else [f.value]
    numbers = [_parse_finite_number(item) for item in raw_values]
    if raw_values and all(number is not None for number in numbers):
        expr, values = element.as_float(), numbers
    else:
        expr, values = element.as_string(), [str(item) for item in raw_values]
    if f.op == "in":
        return expr.in_(values) if values else false()
    if f.op == "ne":
        return _ne_clause(expr, values[0])
    return _COMPARATORS[f.op](expr, values[0])


def _json_list_elements(attr, dialect: str):
    if dialect == "postgresql":
        return func.jsonb_array_elements_text(cast(attr, JSONB)).table_valued("value")
    return func.json_each(attr).table_valued("value")


def json_list_clause(attr, f: FilterClause, dialect: str):
    """Element membership on a JSON array column: `eq` matches any element, `ne` none."""
    elements = _json_list_elements(attr, dialect)
    if f.op == "in":
        values = [str(item) for item in f.value]
        if not values:
            return false()
        return select(elements.c.value).where(elements.c.value.in_(values)).exists()
    op = "eq" if f.op == "ne" else f.op
    member = select(elements.c.value).where(_COMPARATORS[op](elements.c.value, str(f.value))).exists()
    return ~member if f.op == "ne" else member


def apply_filters(q: Query, model, filters: Sequence[FilterClause], hidden_fields: Sequence[str] = ()) -> Query:
    for f in filters:
        target = _field_target(model, f.field, hidden_fields)
        if target is None:
            _LOG.debug("ignoring filter on unknown field %r", f.field)
            continue
        attr, path = target
        if path:
            q = q.filter(_json_path_clause(attr, path, f))
        elif _is_json_list(attr):
            q = q.filter(json_list_clause(attr, f, _dialect_name(q)))
        elif _is_json_column(attr):
            _LOG.debug("ignoring filter on whole document field %r", f.field)
        else:
            q = q.filter(_column_clause(attr, f))
    return q


def _search_terms(search: str | None) -> list[str]:
    return [term for term in str(search or "").split() if term]


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _term_matches(model, text_index: Mapping[str, int], terms: list[str]):
    for field, weight in text_index.items():
        attr = getattr(model, field)
        for term in terms:
            yield attr.ilike(_like_pattern(term), escape="\\"), weight


def apply_search(q: Query, model, search: str | None, text_index: Mapping[str, int] | None) -> Query:
    terms = _search_terms(search)
    if not terms or not text_index:
        return q
    return q.filter(or_(*(cond for cond, _ in _term_matches(model, text_index, terms))))


def relevance_score(model, search: str | None, text_index: Mapping[str, int] | None):
    terms = _search_terms(search)
    if not terms or not text_index:
        return None
    weighted = [case((cond, weight), else_=0) for cond, weight in _term_matches(model, text_index, terms)]
    return reduce(operator.add, weighted)


def _json_sort_expr(attr, path: tuple[str, ...], dialect: str):
    if dialect == "postgresql":
        # jsonb orders numbers numerically and strings as text.
        document = cast(attr, JSONB)
        return document[path] if len(path) > 1 else document[path[0]]
    return func.json_extract(attr, "$." + ".".join(path))


def _sort_expr(q: Query, model, field: str, hidden_fields: Sequence[str]):
    target = _field_target(model, field, hidden_fields)
    if target is None:
        return None
    attr, path = target
    if path:
        return _json_sort_expr(attr, path, _dialect_name(q))
    if _is_json_column(attr):
        return None
    return attr


def apply_sort(
    q: Query,
    model,
    sort: Sequence[SortClause],
    *,
    relevance=None,
    hidden_fields: Sequence[str] = (),
    default_sort: Sequence[SortClause] = DEFAULT_SORT,
) -> Query:
    columns = _columns_map(model)
    applied = False
    for s in sort:
        if s.field == RELEVANCE_SORT_KEY and s.field not in columns:
            expr = relevance
        else:
            expr = _sort_expr(q, model, s.field, hidden_fields)
        if expr is None:
            continue
        q = q.order_by(asc(expr) if s.dir == "asc" else desc(expr))
        applied = True
    if not applied and default_sort:
        return apply_sort(q, model, default_sort, default_sort=())
    return q


def projected_fields(model, projection: Projection, hidden_fields: Sequence[str] = ()) -> tuple[str, ...]:
    columns = list(_columns_map(model).keys())
    hidden = set(hidden_fields)
    if projection.include:
        requested = {name.split(".")[0] for name in projection.include}
        requested.add("id")
        return tuple(name for name in columns if name in requested and name not in hidden)
    excluded = {name.split(".")[0] for name in projection.exclude} - {"id"}
    return tuple(name for name in columns if name not in excluded and name not in hidden)


def apply_projection(q: Query, model, fields: Sequence[str]) -> Query:
    return q.options(load_only(*(getattr(model, name) for name in fields)))


def apply_pagination(q: Query, page: PageSpec) -> Query:
    return q.offset(page.skip).limit(page.limit)


def build_query(
    base_query: Query,
    model,
    request: ListRequest,
    *,
    text_index: Mapping[str, int] | None = None,
    hidden_fields: Sequence[str] = (),
    default_sort: Sequence[SortClause] = DEFAULT_SORT,
) -> QueryResult:
    predicate = apply_filters(base_query, model, request.filters, hidden_fields)
    predicate = apply_search(predicate, model, request.search, text_index)
    relevance = relevance_score(model, request.search, text_index)

    q = apply_sort(
        predicate,
        model,
        request.sort,
        relevance=relevance,
        hidden_fields=hidden_fields,
        default_sort=default_sort,
    )
    fields = projected_fields(model, request.projection, hidden_fields)
    q = apply_projection(q, model, fields)
    q = apply_pagination(q, request.page)
    return QueryResult(query=q, count=predicate.count, fields=fields, request=request)


def pagination_metadata(total: int, page: PageSpec) -> PaginationMeta:
    return PaginationMeta.compute(total, page.page, page.limit)
