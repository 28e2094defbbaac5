"""
Lavandaria API — Authentication Service
=========================================

What:  Verifies staff and client credentials and changes passwords.
How:   Looks up the active account, checks the bcrypt hash in a worker
       thread (bcrypt is CPU-bound), and raises AuthenticationError with
       one message for "unknown account" and "wrong password" alike.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.auth.passwords import hash_password, verify_password
from app.auth.roles import Role, STAFF_ROLES
from app.auth.session import Principal
from app.exceptions import AuthenticationError, DatabaseError, NotFoundError
from app.models import Client, User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


def _invalid_credentials() -> AuthenticationError:
    return AuthenticationError(message="Invalid credentials", code=INVALID_CREDENTIALS)


class AuthService:

    async def authenticate_user(self, db: AsyncSession, username: str, password: str) -> Principal:
        """Return the staff Principal for valid credentials."""
        try:
            result = await db.execute(
                select(User).where(User.username == username, User.is_active.is_(True))
            )
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during staff login: %s", str(e))
            raise DatabaseError(context={"operation": "authenticate_user"})

        if user is None:
            logger.info("Staff login failed: unknown or inactive username")
            raise _invalid_credentials()

        role = Role.parse(user.role)
        if role not in STAFF_ROLES:
            logger.error("User %s has invalid staff role %r", user.id, user.role)
            raise _invalid_credentials()

        if not await run_in_threadpool(verify_password, password, user.password):
            logger.info("Staff login failed: wrong password for user %s", user.id)
            raise _invalid_credentials()

        logger.info("Staff login succeeded for user %s (role=%s)", user.id, role.value)
        return Principal(role=role, user_id=user.id, name=user.full_name)

    async def authenticate_client(self, db: AsyncSession, phone: str, password: str) -> Principal:
        """Return the client Principal for valid credentials."""
        try:
            result = await db.execute(
                select(Client).where(Client.phone == phone, Client.is_active.is_(True))
            )
            client = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during client login: %s", str(e))
            raise DatabaseError(context={"operation": "authenticate_client"})

        if client is None or not await run_in_threadpool(verify_password, password, client.password):
            logger.info("Client login failed")
            raise _invalid_credentials()

        logger.info("Client login succeeded for client %s", client.id)
        return Principal(
            role=Role.CLIENT,
            client_id=client.id,
            name=client.full_name,
            must_change_password=bool(client.must_change_password),
        )

    async def change_password(
        self,
        db: AsyncSession,
        principal: Principal,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Change the caller's own password.

        Clients also lose the must_change_password flag.

        Raises:
            NotFoundError: the session's account no longer exists
            AuthenticationError: current password is wrong (INVALID_CREDENTIALS)
        """
        model = Client if principal.role is Role.CLIENT else User
        account_id = principal.account_id
        try:
            result = await db.execute(select(model.password).where(model.id == account_id))
            stored = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error reading password hash: %s", str(e))
            raise DatabaseError(context={"operation": "change_password"})

        if stored is None:
            raise NotFoundError(resource="account", resource_id=str(account_id))

        if not await run_in_threadpool(verify_password, current_password, stored):
            raise AuthenticationError(
                message="Current password is incorrect", code=INVALID_CREDENTIALS
            )

        hashed = await run_in_threadpool(hash_password, new_password)
        values = {"password": hashed}
        if model is Client:
            values["must_change_password"] = False
        try:
            await db.execute(update(model).where(model.id == account_id).values(**values))
        except SQLAlchemyError as e:
            logger.error("Database error updating password: %s", str(e))
            raise DatabaseError(context={"operation": "change_password"})

        logger.info("Password changed for %s %s", principal.role.value, account_id)


auth_service = AuthService()
