"""Laundry order payloads."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.laundry_order import OrderStatus

OrderType = Literal["bulk_kg", "itemized", "house_bundle"]


class LaundryOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    client_id: int
    assigned_worker_id: Optional[int] = None
    order_type: str
    status: str
    total_weight_kg: Optional[Decimal] = None
    total_price: Decimal
    created_at: datetime
    ready_at: Optional[datetime] = None
    collected_at: Optional[datetime] = None


class LaundryOrderCreateRequest(BaseModel):
    """Prices arrive already computed; the order number is generated."""

    client_id: int = Field(gt=0)
    order_type: OrderType = "bulk_kg"
    assigned_worker_id: Optional[int] = Field(default=None, gt=0)
    total_weight_kg: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    total_price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)


class LaundryOrderUpdateRequest(BaseModel):
    """Partial update: only fields present in the body change."""

    client_id: Optional[int] = Field(default=None, gt=0)
    order_type: Optional[OrderType] = None
    assigned_worker_id: Optional[int] = Field(default=None, gt=0)
    total_weight_kg: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    total_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    status: Optional[OrderStatus] = None


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class FinanceSummary(BaseModel):
    order_count: int
    total_revenue: Decimal
    revenue_by_status: Dict[str, Decimal]
