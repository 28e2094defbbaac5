"""
Lavandaria API — Client Account Service
=========================================

What:  Lists, reads, creates, updates and deletes client accounts, and
       reads a client's own profile.
How:   Route guards decide who may call each operation (any staff member
       lists clients as contacts; managing them follows the can_manage
       matrix for the `client` role). The service owns the data rules:

    - phone numbers are unique (they are the client login)
    - full_name is "first last" for people, company_name for enterprises
    - new accounts get the configured temporary password and must change
      it on first login
    - a client with laundry orders cannot be deleted
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.auth.passwords import hash_password
from app.auth.session import Principal
from app.config import settings
from app.exceptions import ConflictError, DatabaseError, LavandariaError, NotFoundError
from app.models import Client
from app.pagination import PaginationRequest
from app.schemas.client import ClientCreateRequest, ClientResponse, ClientUpdateRequest

logger = logging.getLogger(__name__)

CLIENT_SORT_FIELDS = {
    "id": Client.id,
    "full_name": Client.full_name,
    "phone": Client.phone,
    "created_at": Client.created_at,
}


def display_name(
    is_enterprise: bool,
    first_name: Optional[str],
    last_name: Optional[str],
    company_name: Optional[str],
) -> str:
    if is_enterprise:
        return (company_name or "").strip() or "Enterprise Client"
    return f"{(first_name or '').strip()} {(last_name or '').strip()}".strip()


class ClientService:

    async def list_clients(
        self, db: AsyncSession, page: PaginationRequest
    ) -> Tuple[List[ClientResponse], int]:
        try:
            result = await db.execute(page.apply(select(Client), CLIENT_SORT_FIELDS))
            clients = list(result.scalars().all())

            count_result = await db.execute(select(func.count(Client.id)))
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing clients: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_clients"})

        return [ClientResponse.model_validate(c) for c in clients], total

    async def _load(self, db: AsyncSession, client_id: int) -> Client:
        try:
            result = await db.execute(select(Client).where(Client.id == client_id))
            client = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading client %s: %s", client_id, str(e))
            raise DatabaseError(context={"client_id": client_id})
        if client is None:
            raise NotFoundError(resource="client", resource_id=str(client_id))
        return client

    async def get_client(self, db: AsyncSession, client_id: int) -> ClientResponse:
        return ClientResponse.model_validate(await self._load(db, client_id))

    async def get_own_profile(self, db: AsyncSession, principal: Principal) -> ClientResponse:
        """The calling client's account; a session outliving its account is 404."""
        return ClientResponse.model_validate(await self._load(db, principal.client_id))

    async def _ensure_phone_free(
        self, db: AsyncSession, phone: str, exclude_id: Optional[int] = None
    ) -> None:
        query = select(Client.id).where(Client.phone == phone)
        if exclude_id is not None:
            query = query.where(Client.id != exclude_id)
        existing = await db.execute(query)
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(message="Phone number already exists")

    async def create_client(
        self, db: AsyncSession, principal: Principal, payload: ClientCreateRequest
    ) -> ClientResponse:
        try:
            await self._ensure_phone_free(db, payload.phone)
            client = Client(
                phone=payload.phone,
                password=await run_in_threadpool(hash_password, settings.client_default_password),
                full_name=display_name(
                    payload.is_enterprise, payload.first_name, payload.last_name, payload.company_name
                ),
                first_name=payload.first_name,
                last_name=payload.last_name,
                email=payload.email,
                nif=payload.nif,
                notes=payload.notes,
                is_enterprise=payload.is_enterprise,
                company_name=payload.company_name,
                is_active=True,
                must_change_password=True,
            )
            db.add(client)
            await db.flush()
        except LavandariaError:
            raise
        except IntegrityError:
            raise ConflictError(message="Phone number already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating client: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_client"})

        logger.info("Client %s created by %s %s", client.id, principal.role.value, principal.user_id)
        return ClientResponse.model_validate(client)

    async def update_client(
        self,
        db: AsyncSession,
        principal: Principal,
        client_id: int,
        payload: ClientUpdateRequest,
    ) -> ClientResponse:
        client = await self._load(db, client_id)
        changes = payload.model_dump(exclude_unset=True)

        try:
            phone = changes.pop("phone", None)
            if phone is not None and phone.strip() != client.phone:
                await self._ensure_phone_free(db, phone.strip(), exclude_id=client.id)
                client.phone = phone.strip()

            for field in ("is_enterprise", "is_active"):
                if changes.get(field) is not None:
                    setattr(client, field, changes[field])
            for field in ("first_name", "last_name", "email", "nif", "notes", "company_name"):
                if field in changes:
                    setattr(client, field, changes[field])

            name = display_name(
                client.is_enterprise, client.first_name, client.last_name, client.company_name
            )
            if name:
                client.full_name = name

            await db.flush()
        except LavandariaError:
            raise
        except IntegrityError:
            raise ConflictError(message="Phone number already exists")
        except SQLAlchemyError as e:
            logger.error("Database error updating client %s: %s", client_id, str(e))
            raise DatabaseError(context={"client_id": client_id})

        logger.info("Client %s updated by %s %s", client_id, principal.role.value, principal.user_id)
        return ClientResponse.model_validate(client)

    async def delete_client(self, db: AsyncSession, principal: Principal, client_id: int) -> None:
        client = await self._load(db, client_id)
        try:
            await db.delete(client)
            await db.flush()
        except IntegrityError:
            raise ConflictError(message="Client has laundry orders and cannot be deleted")
        except SQLAlchemyError as e:
            logger.error("Database error deleting client %s: %s", client_id, str(e))
            raise DatabaseError(context={"client_id": client_id})

        logger.info("Client %s deleted by %s %s", client_id, principal.role.value, principal.user_id)


client_service = ClientService()
