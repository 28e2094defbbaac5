"""
Lavandaria API — Staff User Routes
====================================

All routes require master or admin. Which accounts an actor can see or
change is decided by the can_manage matrix inside UserService.

Bodies are read with json_body() after the guard, so an anonymous caller
gets 401 whatever the body holds.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from app.auth.guards import require_master_or_admin
from app.auth.session import Principal
from app.database import get_db_session
from app.envelope import list_response, success
from app.pagination import PaginationRequest, pagination
from app.request_body import json_body
from app.schemas.user import UserCreateRequest, UserUpdateRequest
from app.services.user_service import USER_SORT_FIELDS, user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", summary="List staff accounts visible to the caller")
async def list_users(
    principal: Principal = Depends(require_master_or_admin),
    page: PaginationRequest = Depends(pagination(USER_SORT_FIELDS, default_sort="id")),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    users, total = await user_service.list_users(db, principal, page)
    return list_response(
        [u.model_dump() for u in users],
        total=total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{user_id}", summary="Get one staff account")
async def get_user(
    user_id: int,
    principal: Principal = Depends(require_master_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    user = await user_service.get_user(db, principal, user_id)
    return success({"data": user.model_dump()})


@router.post("", status_code=201, summary="Create a staff account")
async def create_user(
    principal: Principal = Depends(require_master_or_admin),
    body: UserCreateRequest = Depends(json_body(UserCreateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    user = await user_service.create_user(db, principal, body)
    return success({"data": user.model_dump()}, status_code=201)


@router.put("/{user_id}", summary="Update a staff account")
async def update_user(
    user_id: int,
    principal: Principal = Depends(require_master_or_admin),
    body: UserUpdateRequest = Depends(json_body(UserUpdateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    user = await user_service.update_user(db, principal, user_id, body)
    return success({"data": user.model_dump()})


@router.delete("/{user_id}", summary="Delete a staff account")
async def delete_user(
    user_id: int,
    principal: Principal = Depends(require_master_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    await user_service.delete_user(db, principal, user_id)
    return success()
