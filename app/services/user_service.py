"""
Lavandaria API — Staff User Service
=====================================

What:  Lists, reads, creates, updates and deletes staff accounts.
How:   Every operation that touches a specific account runs the actor's
       role against the can_manage matrix (app.auth.roles):

           master → client, worker, admin, master
           admin  → client, worker

Visibility:
    master sees every staff account; admin sees workers only.

Fixed rules on top of the matrix:
    - nobody creates a master account through the API
    - master accounts are never deleted
    - nobody deletes their own account
"""

import logging
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.auth.guards import ensure_can_manage
from app.auth.passwords import hash_password
from app.auth.roles import Role, STAFF_ROLES
from app.auth.session import Principal
from app.exceptions import (
    AuthorizationError,
    ConflictError,
    DatabaseError,
    LavandariaError,
    NotFoundError,
)
from app.models import User
from app.pagination import PaginationRequest
from app.schemas.user import UserCreateRequest, UserResponse, UserUpdateRequest

logger = logging.getLogger(__name__)

USER_SORT_FIELDS = {
    "id": User.id,
    "full_name": User.full_name,
    "role": User.role,
    "created_at": User.created_at,
}


class UserService:

    def _visibility_filter(self, principal: Principal):
        if principal.role is Role.MASTER:
            return User.role.in_([r.value for r in STAFF_ROLES])
        return User.role == Role.WORKER.value

    async def list_users(
        self,
        db: AsyncSession,
        principal: Principal,
        page: PaginationRequest,
    ) -> Tuple[List[UserResponse], int]:
        """Return one page of visible staff accounts and the total visible count."""
        visible = self._visibility_filter(principal)
        try:
            query = page.apply(select(User).where(visible), USER_SORT_FIELDS)
            result = await db.execute(query)
            users = list(result.scalars().all())

            count_result = await db.execute(select(func.count(User.id)).where(visible))
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_users"})

        return [UserResponse.model_validate(u) for u in users], total

    async def _load(self, db: AsyncSession, user_id: int) -> User:
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id})
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def get_user(self, db: AsyncSession, principal: Principal, user_id: int) -> UserResponse:
        user = await self._load(db, user_id)
        ensure_can_manage(principal, user.role, message="Access denied")
        return UserResponse.model_validate(user)

    async def create_user(
        self,
        db: AsyncSession,
        principal: Principal,
        payload: UserCreateRequest,
    ) -> UserResponse:
        """
        Create a staff account; the phone number becomes the username.

        Raises:
            AuthorizationError: master target, or role outside the actor's matrix row
            ConflictError: phone number already registered
        """
        if payload.role == Role.MASTER.value:
            raise AuthorizationError(message="Cannot create master accounts")
        ensure_can_manage(principal, payload.role, message="You cannot create this user type")

        username = payload.phone.strip()
        try:
            existing = await db.execute(select(User.id).where(User.username == username))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(message="Phone number already exists")

            user = User(
                username=username,
                password=await run_in_threadpool(hash_password, payload.password),
                role=payload.role,
                full_name=f"{payload.first_name.strip()} {payload.last_name.strip()}",
                email=payload.email,
                phone=username,
                is_active=True,
                created_by=principal.user_id,
            )
            db.add(user)
            await db.flush()
        except LavandariaError:
            raise
        except IntegrityError:
            raise ConflictError(message="Phone number already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_user"})

        logger.info(
            "User %s (%s) created by %s %s",
            user.id, user.role, principal.role.value, principal.user_id,
        )
        return UserResponse.model_validate(user)

    async def update_user(
        self,
        db: AsyncSession,
        principal: Principal,
        user_id: int,
        payload: UserUpdateRequest,
    ) -> UserResponse:
        """
        Apply the fields present in `payload` to a staff account.

        Raises:
            NotFoundError: no such user
            AuthorizationError: target role outside the actor's matrix row
            ConflictError: new phone number already registered
        """
        user = await self._load(db, user_id)
        ensure_can_manage(principal, user.role, message="You cannot update this user type")

        changes = payload.model_dump(exclude_unset=True)
        try:
            phone = changes.pop("phone", None)
            if phone is not None and phone.strip() != user.username:
                username = phone.strip()
                existing = await db.execute(
                    select(User.id).where(User.username == username, User.id != user.id)
                )
                if existing.scalar_one_or_none() is not None:
                    raise ConflictError(message="Phone number already exists")
                user.username = username
                user.phone = username

            password = changes.pop("password", None)
            if password and password.strip():
                user.password = await run_in_threadpool(hash_password, password)

            first_name = changes.pop("first_name", None)
            last_name = changes.pop("last_name", None)
            if first_name is not None and last_name is not None:
                user.full_name = f"{first_name.strip()} {last_name.strip()}"

            if "email" in changes:
                user.email = changes["email"]
            if changes.get("is_active") is not None:
                user.is_active = changes["is_active"]

            await db.flush()
        except LavandariaError:
            raise
        except IntegrityError:
            raise ConflictError(message="Phone number already exists")
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id})

        logger.info("User %s updated by %s %s", user_id, principal.role.value, principal.user_id)
        return UserResponse.model_validate(user)

    async def delete_user(self, db: AsyncSession, principal: Principal, user_id: int) -> None:
        user = await self._load(db, user_id)

        if user.role == Role.MASTER.value:
            raise AuthorizationError(message="Cannot delete master account")
        if principal.user_id is not None and user.id == principal.user_id:
            raise AuthorizationError(message="Cannot delete your own account")
        ensure_can_manage(principal, user.role)

        try:
            await db.delete(user)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id})

        logger.info("User %s deleted by %s %s", user_id, principal.role.value, principal.user_id)


user_service = UserService()
