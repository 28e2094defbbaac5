"""
Lavandaria API — Laundry Order Routes
=======================================

    GET    /api/laundry-orders                  any session; clients see their own
    POST   /api/laundry-orders                  master/admin only
    GET    /api/laundry-orders/summary/finance  master/admin only
    GET    /api/laundry-orders/{id}             any session; clients only their own
    PUT    /api/laundry-orders/{id}             master/admin only
    PATCH  /api/laundry-orders/{id}/status      staff only
    DELETE /api/laundry-orders/{id}             master/admin only

List parameters: limit (1-100, default 50), offset (>= 0), sort (see
ORDER_SORT_FIELDS, default created_at), order (ASC|DESC, default DESC).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from app.auth.guards import (
    require_auth,
    require_finance_access,
    require_master_or_admin,
    require_staff,
)
from app.auth.session import Principal
from app.database import get_db_session
from app.envelope import list_response, success
from app.pagination import PaginationRequest, pagination
from app.request_body import json_body
from app.schemas.laundry_order import (
    LaundryOrderCreateRequest,
    LaundryOrderUpdateRequest,
    StatusUpdateRequest,
)
from app.services.laundry_order_service import ORDER_SORT_FIELDS, laundry_order_service

router = APIRouter(prefix="/api/laundry-orders", tags=["Laundry Orders"])


@router.get("", summary="List laundry orders")
async def list_orders(
    principal: Principal = Depends(require_auth),
    page: PaginationRequest = Depends(pagination(ORDER_SORT_FIELDS, default_sort="created_at")),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    orders, total = await laundry_order_service.list_orders(db, principal, page)
    return list_response(
        [o.model_dump() for o in orders],
        total=total,
        limit=page.limit,
        offset=page.offset,
    )


@router.post("", status_code=201, summary="Create a laundry order")
async def create_order(
    principal: Principal = Depends(require_master_or_admin),
    body: LaundryOrderCreateRequest = Depends(json_body(LaundryOrderCreateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    order = await laundry_order_service.create_order(db, principal, body)
    return success({"data": order.model_dump()}, status_code=201)


# Declared before /{order_id} so "summary" is not parsed as an id
@router.get("/summary/finance", summary="Revenue totals by status")
async def finance_summary(
    principal: Principal = Depends(require_finance_access),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    summary = await laundry_order_service.finance_summary(db)
    return success({"data": summary.model_dump()})


@router.get("/{order_id}", summary="Get one laundry order")
async def get_order(
    order_id: int,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    order = await laundry_order_service.get_order(db, principal, order_id)
    return success({"data": order.model_dump()})


@router.put("/{order_id}", summary="Update a laundry order")
async def update_order(
    order_id: int,
    principal: Principal = Depends(require_master_or_admin),
    body: LaundryOrderUpdateRequest = Depends(json_body(LaundryOrderUpdateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    order = await laundry_order_service.update_order(db, principal, order_id, body)
    return success({"data": order.model_dump()})


@router.patch("/{order_id}/status", summary="Move an order through its lifecycle")
async def update_status(
    order_id: int,
    principal: Principal = Depends(require_staff),
    body: StatusUpdateRequest = Depends(json_body(StatusUpdateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    order = await laundry_order_service.update_status(db, order_id, body.status)
    return success({"data": order.model_dump()})


@router.delete("/{order_id}", summary="Delete a laundry order")
async def delete_order(
    order_id: int,
    principal: Principal = Depends(require_master_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    await laundry_order_service.delete_order(db, principal, order_id)
    return success()
