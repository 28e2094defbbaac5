"""
Lavandaria API — Laundry Order Service
========================================

What:  Order listing and detail scoped by role, order create/update/delete,
       the status lifecycle, and the finance summary.

Visibility:
    master, admin, worker   all orders
    client                  own orders only (client_id == session client_id)

Status lifecycle:
    received → in_progress → ready → collected, or cancelled.
    Entering `ready` stamps ready_at; entering `collected` stamps collected_at.
"""

import logging
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.roles import Role
from app.auth.session import Principal
from app.exceptions import (
    AuthorizationError,
    ConflictError,
    DatabaseError,
    LavandariaError,
    NotFoundError,
)
from app.models import Client, LaundryOrder, OrderStatus
from app.pagination import PaginationRequest
from app.schemas.laundry_order import (
    FinanceSummary,
    LaundryOrderCreateRequest,
    LaundryOrderResponse,
    LaundryOrderUpdateRequest,
)

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5

ORDER_SORT_FIELDS = {
    "id": LaundryOrder.id,
    "order_number": LaundryOrder.order_number,
    "status": LaundryOrder.status,
    "created_at": LaundryOrder.created_at,
    "total_price": LaundryOrder.total_price,
}


def generate_order_number(now: Optional[datetime] = None) -> str:
    """LDR-YYYYMMDD-NNN with a random three-digit suffix."""
    now = now or datetime.now(timezone.utc)
    return f"LDR-{now:%Y%m%d}-{random.randint(0, 999):03d}"


def _apply_status(order: LaundryOrder, status: OrderStatus) -> None:
    order.status = status.value
    now = datetime.now(timezone.utc)
    if status is OrderStatus.READY:
        order.ready_at = now
    elif status is OrderStatus.COLLECTED:
        order.collected_at = now


class LaundryOrderService:

    def _scope(self, principal: Principal) -> list:
        if principal.role is Role.CLIENT:
            return [LaundryOrder.client_id == principal.client_id]
        return []

    async def list_orders(
        self,
        db: AsyncSession,
        principal: Principal,
        page: PaginationRequest,
    ) -> Tuple[List[LaundryOrderResponse], int]:
        filters = self._scope(principal)
        try:
            result = await db.execute(
                page.apply(select(LaundryOrder).where(*filters), ORDER_SORT_FIELDS)
            )
            orders = list(result.scalars().all())

            count_result = await db.execute(
                select(func.count(LaundryOrder.id)).where(*filters)
            )
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing laundry orders: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "list_orders"})

        logger.debug(
            "Listed %d of %d orders for %s (limit=%d offset=%d)",
            len(orders), total, principal.role.value, page.limit, page.offset,
        )
        return [LaundryOrderResponse.model_validate(o) for o in orders], total

    async def _load(self, db: AsyncSession, order_id: int) -> LaundryOrder:
        try:
            result = await db.execute(select(LaundryOrder).where(LaundryOrder.id == order_id))
            order = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error loading order %s: %s", order_id, str(e))
            raise DatabaseError(context={"order_id": order_id})
        if order is None:
            raise NotFoundError(resource="order", resource_id=str(order_id))
        return order

    async def get_order(
        self, db: AsyncSession, principal: Principal, order_id: int
    ) -> LaundryOrderResponse:
        order = await self._load(db, order_id)
        if principal.role is Role.CLIENT and order.client_id != principal.client_id:
            raise AuthorizationError(message="Not your order")
        return LaundryOrderResponse.model_validate(order)

    async def update_status(
        self, db: AsyncSession, order_id: int, status: OrderStatus
    ) -> LaundryOrderResponse:
        order = await self._load(db, order_id)
        previous = order.status
        _apply_status(order, status)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating order %s: %s", order_id, str(e))
            raise DatabaseError(context={"order_id": order_id})

        logger.info("Order %s status %s → %s", order.order_number, previous, status.value)
        return LaundryOrderResponse.model_validate(order)

    async def _ensure_client_exists(self, db: AsyncSession, client_id: int) -> None:
        result = await db.execute(select(Client.id).where(Client.id == client_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="client", resource_id=str(client_id))

    async def _free_order_number(self, db: AsyncSession) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number()
            result = await db.execute(
                select(LaundryOrder.id).where(LaundryOrder.order_number == candidate)
            )
            if result.scalar_one_or_none() is None:
                return candidate
        raise ConflictError(message="Could not allocate an order number, please retry")

    async def create_order(
        self, db: AsyncSession, principal: Principal, payload: LaundryOrderCreateRequest
    ) -> LaundryOrderResponse:
        """
        Create an order in `received` state for an existing client.

        Raises:
            NotFoundError: client_id does not exist
            ConflictError: no free order number after a few attempts
        """
        try:
            await self._ensure_client_exists(db, payload.client_id)
            order = LaundryOrder(
                order_number=await self._free_order_number(db),
                client_id=payload.client_id,
                assigned_worker_id=payload.assigned_worker_id,
                order_type=payload.order_type,
                status=OrderStatus.RECEIVED.value,
                total_weight_kg=payload.total_weight_kg,
                total_price=payload.total_price,
                created_at=datetime.now(timezone.utc),
            )
            db.add(order)
            await db.flush()
        except LavandariaError:
            raise
        except IntegrityError:
            raise ConflictError(message="Order could not be created, please retry")
        except SQLAlchemyError as e:
            logger.error("Database error creating laundry order: %s", str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_order"})

        logger.info(
            "Order %s created for client %s by %s %s",
            order.order_number, order.client_id, principal.role.value, principal.user_id,
        )
        return LaundryOrderResponse.model_validate(order)

    async def update_order(
        self,
        db: AsyncSession,
        principal: Principal,
        order_id: int,
        payload: LaundryOrderUpdateRequest,
    ) -> LaundryOrderResponse:
        """Apply the fields present in `payload`; a status change stamps like update_status."""
        order = await self._load(db, order_id)
        changes = payload.model_dump(exclude_unset=True)

        try:
            client_id = changes.get("client_id")
            if client_id is not None and client_id != order.client_id:
                await self._ensure_client_exists(db, client_id)
                order.client_id = client_id

            for field in ("order_type", "total_price"):
                if changes.get(field) is not None:
                    setattr(order, field, changes[field])
            # Explicit null unassigns the worker / clears the weight
            for field in ("assigned_worker_id", "total_weight_kg"):
                if field in changes:
                    setattr(order, field, changes[field])

            if payload.status is not None:
                _apply_status(order, payload.status)

            await db.flush()
        except LavandariaError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating order %s: %s", order_id, str(e))
            raise DatabaseError(context={"order_id": order_id})

        logger.info("Order %s updated by %s %s", order.order_number, principal.role.value, principal.user_id)
        return LaundryOrderResponse.model_validate(order)

    async def delete_order(self, db: AsyncSession, principal: Principal, order_id: int) -> None:
        order = await self._load(db, order_id)
        try:
            await db.delete(order)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting order %s: %s", order_id, str(e))
            raise DatabaseError(context={"order_id": order_id})

        logger.info("Order %s deleted by %s %s", order.order_number, principal.role.value, principal.user_id)

    async def finance_summary(self, db: AsyncSession) -> FinanceSummary:
        """Order count and revenue, overall and per status."""
        try:
            result = await db.execute(
                select(
                    LaundryOrder.status,
                    func.count(LaundryOrder.id),
                    func.coalesce(func.sum(LaundryOrder.total_price), 0),
                ).group_by(LaundryOrder.status)
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error building finance summary: %s", str(e))
            raise DatabaseError(context={"operation": "finance_summary"})

        by_status = {status: Decimal(str(revenue)) for status, _, revenue in rows}
        return FinanceSummary(
            order_count=sum(count for _, count, _ in rows),
            total_revenue=sum(by_status.values(), Decimal("0")),
            revenue_by_status=by_status,
        )


laundry_order_service = LaundryOrderService()
