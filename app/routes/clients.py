"""
Lavandaria API — Client Account Routes
========================================

    GET    /api/clients        any staff member (clients as contacts)
    GET    /api/clients/me     the calling client's own profile
    GET    /api/clients/{id}   roles that can manage clients (master, admin)
    POST   /api/clients        roles that can manage clients
    PUT    /api/clients/{id}   roles that can manage clients
    DELETE /api/clients/{id}   roles that can manage clients

List parameters: limit, offset, sort (see CLIENT_SORT_FIELDS, default
created_at), order.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from app.auth.guards import can_manage_target, require_client, require_staff
from app.auth.roles import Role
from app.auth.session import Principal
from app.database import get_db_session
from app.envelope import list_response, success
from app.pagination import PaginationRequest, pagination
from app.request_body import json_body
from app.schemas.client import ClientCreateRequest, ClientUpdateRequest
from app.services.client_service import CLIENT_SORT_FIELDS, client_service

router = APIRouter(prefix="/api/clients", tags=["Clients"])

manage_clients = can_manage_target(Role.CLIENT, message="Admin access required")


@router.get("", summary="List client accounts")
async def list_clients(
    principal: Principal = Depends(require_staff),
    page: PaginationRequest = Depends(pagination(CLIENT_SORT_FIELDS, default_sort="created_at")),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    clients, total = await client_service.list_clients(db, page)
    return list_response(
        [c.model_dump() for c in clients],
        total=total,
        limit=page.limit,
        offset=page.offset,
    )


# Declared before /{client_id} so "me" is not parsed as an id
@router.get("/me", summary="The calling client's profile")
async def get_own_profile(
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    client = await client_service.get_own_profile(db, principal)
    return success({"data": client.model_dump()})


@router.get("/{client_id}", summary="Get one client account")
async def get_client(
    client_id: int,
    principal: Principal = Depends(manage_clients),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    client = await client_service.get_client(db, client_id)
    return success({"data": client.model_dump()})


@router.post("", status_code=201, summary="Create a client account")
async def create_client(
    principal: Principal = Depends(manage_clients),
    body: ClientCreateRequest = Depends(json_body(ClientCreateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    client = await client_service.create_client(db, principal, body)
    return success({"data": client.model_dump()}, status_code=201)


@router.put("/{client_id}", summary="Update a client account")
async def update_client(
    client_id: int,
    principal: Principal = Depends(manage_clients),
    body: ClientUpdateRequest = Depends(json_body(ClientUpdateRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    client = await client_service.update_client(db, principal, client_id, body)
    return success({"data": client.model_dump()})


@router.delete("/{client_id}", summary="Delete a client account")
async def delete_client(
    client_id: int,
    principal: Principal = Depends(manage_clients),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    await client_service.delete_client(db, principal, client_id)
    return success()
