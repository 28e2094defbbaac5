"""
Lavandaria API — Response Envelope
====================================

What:  Renders every JSON body the API produces into one of two shapes.
How:   Three helpers build a JSONResponse; route handlers and exception
       handlers never return a bare value.
Who:   Route handlers (success / list_response), exception handlers and
       middleware (failure).

Shapes:
    Success:
        {"success": true, ...payload, "_meta": {"correlationId", "timestamp"}}
    List:
        {"success": true, "data": [...],
         "_meta": {"correlationId", "timestamp", "total"?, "limit"?, "offset"?, "count"}}
    Failure:
        {"success": false, "error": "...", "code"?: "...", ...extra,
         "_meta": {"correlationId", "timestamp"}}

The success payload is spread at the top level, so handlers may pass
{"data": ...} or named fields such as {"user": ...}. `success` and `_meta`
always belong to the envelope; payload keys cannot override them.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse

from app.context import generate_correlation_id, get_correlation_id

RESERVED_KEYS = {"success", "_meta"}


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2026-10-18T09:30:00.123Z."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def build_meta(**extra: Any) -> Dict[str, Any]:
    """
    Build the `_meta` block for the current request.

    Outside a request (or before the correlation middleware ran) an id is
    synthesized so the field is never omitted. Extra keys whose value is
    None are dropped.
    """
    meta: Dict[str, Any] = {
        "correlationId": get_correlation_id() or generate_correlation_id(),
        "timestamp": utc_timestamp(),
    }
    meta.update({key: value for key, value in extra.items() if value is not None})
    return meta


def _strip_reserved(payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if not payload:
        return {}
    return {key: value for key, value in payload.items() if key not in RESERVED_KEYS}


def success(
    payload: Optional[Mapping[str, Any]] = None,
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Render `{success: true, **payload, _meta}` with the given status."""
    body = {"success": True, **_strip_reserved(payload), "_meta": build_meta()}
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=dict(headers) if headers else None,
    )


def failure(
    status_code: int,
    message: str,
    code: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    """
    Render `{success: false, error, code?, **extra, _meta}`.

    `extra` carries endpoint-specific fields such as `retryAfter` or
    `details`; reserved keys are ignored.
    """
    body: Dict[str, Any] = {"success": False, "error": message}
    if code:
        body["code"] = code
    for key, value in _strip_reserved(extra).items():
        if value is not None and key not in body:
            body[key] = value
    body["_meta"] = build_meta()
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=dict(headers) if headers else None,
    )


def list_response(
    items: Sequence[Any],
    total: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    status_code: int = 200,
) -> JSONResponse:
    """
    Render a page of results.

    `count` is always len(items). `total` is the full number of matching
    rows and is independent of `count`, which is what lets a client render
    "page X of Y" without a second round trip.
    """
    items = list(items)
    body = {
        "success": True,
        "data": items,
        "_meta": build_meta(total=total, limit=limit, offset=offset, count=len(items)),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
