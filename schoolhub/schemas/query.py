import math
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal, Optional, get_args

Op = Literal["eq", "ne", "gt", "gte", "lt", "lte", "in"]
Dir = Literal["asc", "desc"]

FILTER_OPERATORS = frozenset(get_args(Op))
RESERVED_PARAMS = frozenset({"page", "limit", "sort", "fields", "search"})

class FilterClause(BaseModel):
    field: str
    op: Op = "eq"
    # str for scalar operators, list[str] for "in"
    value: Any

class SortClause(BaseModel):
    field: str
    dir: Dir = "asc"

class Projection(BaseModel):
    include: List[str] = []
    exclude: List[str] = []

    @property
    def is_empty(self) -> bool:
        return not self.include and not self.exclude

class PageSpec(BaseModel):
    page: int = 1
    limit: int = 25

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

class ListRequest(BaseModel):
    filters: List[FilterClause] = []
    search: Optional[str] = None
    sort: List[SortClause] = []
    projection: Projection = Projection()
    page: PageSpec = PageSpec()

class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    limit: int
    pages: int
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")

    @classmethod
    def compute(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(
            total=total,
            page=page,
            limit=limit,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )

    def as_payload(self) -> dict:
        return self.model_dump(by_alias=True)
