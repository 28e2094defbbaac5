"""
Lavandaria API — Pagination Normalizer
========================================

What:  Turns raw list-query parameters into a bounded, safe PaginationRequest.
How:   `normalize()` parses and clamps limit/offset and checks sort/order
       against an allow-list; `pagination()` wraps it as a FastAPI dependency.

Rules:
    limit   default 50 when absent or non-numeric, decimals truncated, clamped to [1, 100]
    offset  default 0 when absent or non-numeric, clamped to >= 0
    sort    default "id"; a name outside the allow-list → 400 INVALID_SORT_FIELD
    order   default DESC; ASC/DESC case-insensitive; anything else → 400 INVALID_ORDER

Out-of-range numbers are clamped because they are harmless (limit=0 from a
buggy client). Unknown column names are rejected, never coerced: they end
up in ORDER BY, and a silent default would hide the client bug.

Usage:
    @router.get("/orders")
    async def list_orders(
        principal: Principal = Depends(require_auth),
        page: PaginationRequest = Depends(pagination(ORDER_SORT_FIELDS, default_sort="created_at")),
    ):
        ...
"""

import math
from typing import Any, Callable, Iterable, Literal, Mapping, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Select, asc, desc

from app.config import settings
from app.exceptions import InvalidOrderError, InvalidSortFieldError

DEFAULT_SORT = "id"
DEFAULT_ORDER = "DESC"


class PaginationRequest(BaseModel):
    """Normalized pagination for one list request."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(ge=1, description="Page size")
    offset: int = Field(ge=0, description="Rows to skip")
    sort: str = Field(description="Allow-listed sort field")
    order: Literal["ASC", "DESC"] = Field(description="Sort direction")

    def apply(self, query: Select, columns: Mapping[str, Any]) -> Select:
        """
        Add ORDER BY / LIMIT / OFFSET to a SQLAlchemy select.

        `columns` maps each allow-listed sort name to its column, so only
        mapped columns ever reach the ORDER BY clause.
        """
        column = columns[self.sort]
        direction = asc if self.order == "ASC" else desc
        return query.order_by(direction(column)).limit(self.limit).offset(self.offset)


def _parse_int(raw: Any, default: int) -> int:
    if raw is None:
        return default
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        pass
    # "10.5" truncates to 10; inf and nan fall back to the default
    try:
        value = float(text)
    except ValueError:
        return default
    if not math.isfinite(value):
        return default
    return int(value)


def normalize(
    raw_query: Mapping[str, Any],
    allowed_sort_fields: Iterable[str],
    default_sort: str = DEFAULT_SORT,
    default_limit: Optional[int] = None,
    max_limit: Optional[int] = None,
) -> PaginationRequest:
    """
    Normalize raw query parameters.

    Args:
        raw_query: query-string mapping (e.g. request.query_params)
        allowed_sort_fields: names the caller may sort by
        default_sort: sort used when the query has none
        default_limit / max_limit: override the configured page sizes

    Raises:
        InvalidSortFieldError: sort given and not in the allow-list
        InvalidOrderError: order given and not ASC/DESC
    """
    default_limit = default_limit or settings.pagination_default_limit
    max_limit = max_limit or settings.pagination_max_limit
    allowed = frozenset(allowed_sort_fields)

    limit = min(max(_parse_int(raw_query.get("limit"), default_limit), 1), max_limit)
    offset = max(_parse_int(raw_query.get("offset"), 0), 0)

    sort = str(raw_query.get("sort") or "").strip()
    if not sort:
        sort = default_sort
    elif sort not in allowed:
        raise InvalidSortFieldError(sort, allowed)

    raw_order = str(raw_query.get("order") or "").strip()
    order = raw_order.upper() if raw_order else DEFAULT_ORDER
    if order not in ("ASC", "DESC"):
        raise InvalidOrderError(raw_order)

    return PaginationRequest(limit=limit, offset=offset, sort=sort, order=order)


def pagination(
    allowed_sort_fields: Iterable[str],
    default_sort: str = DEFAULT_SORT,
) -> Callable[[Request], Any]:
    """FastAPI dependency factory around `normalize` for one endpoint's allow-list."""
    allowed = frozenset(allowed_sort_fields)
    if default_sort not in allowed:
        raise ValueError(f"default_sort '{default_sort}' is not in the allow-list")

    async def dependency(request: Request) -> PaginationRequest:
        return normalize(request.query_params, allowed, default_sort=default_sort)

    return dependency
