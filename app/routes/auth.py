"""
Lavandaria API — Authentication Routes
========================================

Login routes are the only ones behind the login rate limiter
(app.middleware.rate_limit). Both successful and failed attempts count.

Session lifecycle:
    login   → session cookie carries the role until logout or expiry
    logout  → session cleared
    A role change needs a new login.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import JSONResponse

from app.auth.guards import require_auth
from app.auth.session import Principal, end_session, get_principal, start_session
from app.database import get_db_session
from app.envelope import success
from app.request_body import json_body
from app.schemas.auth import (
    ChangePasswordRequest,
    ClientLoginRequest,
    SessionClient,
    SessionStatus,
    SessionUser,
    UserLoginRequest,
)
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login/user", summary="Staff login (master, admin, worker)")
async def login_user(
    request: Request,
    body: UserLoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    principal = await auth_service.authenticate_user(db, body.username, body.password)
    start_session(request, principal)
    return success({
        "user": SessionUser(
            id=principal.user_id,
            username=body.username,
            role=principal.role.value,
            name=principal.name or "",
        ).model_dump(),
    })


@router.post("/login/client", summary="Client login by phone")
async def login_client(
    request: Request,
    body: ClientLoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    principal = await auth_service.authenticate_client(db, body.phone, body.password)
    start_session(request, principal)
    return success({
        "client": SessionClient(
            id=principal.client_id,
            phone=body.phone,
            name=principal.name or "",
            mustChangePassword=principal.must_change_password,
        ).model_dump(),
    })


@router.get("/check", summary="Current session status")
async def check_session(request: Request) -> JSONResponse:
    principal = get_principal(request)
    if principal is None:
        return success(SessionStatus(authenticated=False).model_dump(exclude_none=True))
    return success(SessionStatus(
        authenticated=True,
        userType=principal.role.value,
        userName=principal.name,
        userId=principal.account_id,
        mustChangePassword=principal.must_change_password,
    ).model_dump())


@router.post("/logout", summary="End the session")
async def logout(request: Request) -> JSONResponse:
    end_session(request)
    return success()


@router.post("/change-password", summary="Change the caller's own password")
async def change_password(
    request: Request,
    principal: Principal = Depends(require_auth),
    body: ChangePasswordRequest = Depends(json_body(ChangePasswordRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    await auth_service.change_password(db, principal, body.current_password, body.new_password)
    if principal.must_change_password:
        request.session["must_change_password"] = False
    return success()
