"""
Lavandaria API — Laundry Order Model
======================================

Status lifecycle:
    received → in_progress → ready → collected
    (cancelled may be set from any state)

ready_at / collected_at are stamped when an order enters those states.
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class OrderStatus(str, enum.Enum):
    RECEIVED = "received"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    COLLECTED = "collected"
    CANCELLED = "cancelled"


class LaundryOrder(Base):
    __tablename__ = "laundry_orders_new"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # LDR-YYYYMMDD-NNN
    order_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False
    )
    assigned_worker_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # bulk_kg | itemized | house_bundle
    order_type: Mapped[str] = mapped_column(String(30), nullable=False, default="bulk_kg")
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=OrderStatus.RECEIVED.value,
        server_default=text("'received'"),
    )
    total_weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    total_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0"), server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    ready_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    collected_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_laundry_orders_client", "client_id"),
        Index("idx_laundry_orders_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<LaundryOrder(id={self.id}, order_number='{self.order_number}', "
            f"status='{self.status}')>"
        )
