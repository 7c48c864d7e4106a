"""Pydantic schemas for pickup orders.

JSON field names are camelCase (``createdAt``, ``partnerInvoice``) so payloads
match the admin portal's order objects; Python attributes stay snake_case.
"""
import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderStatus(str, enum.Enum):
    new = "new"
    scheduled = "scheduled"
    on_the_way = "on-the-way"
    arrived = "arrived"
    completed = "completed"
    cancelled = "cancelled"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Invoice ───

class InvoiceItem(CamelModel):
    material_id: str
    material_name: str
    quantity: float
    unit: str = "kg"
    rate: float
    total: float


class Invoice(CamelModel):
    items: list[InvoiceItem] = Field(default_factory=list)
    total: float = 0


# ─── Order ───

class OrderBase(CamelModel):
    customer_id: str
    customer_name: str | None = None
    customer_phone: str | None = None
    city: str | None = None
    area: str | None = None
    address: str | None = None
    pickup_date: datetime | None = None
    pickup_slot: str | None = None
    scrap_category: str | None = None
    description: str | None = None
    status: OrderStatus = OrderStatus.new
    order_source: str | None = None
    created_by: str | None = None

    partner_id: str | None = None
    partner_name: str | None = None
    cancel_reason: str | None = None

    # Lifecycle checkpoints
    priced_at: datetime | None = None
    assigned_at: datetime | None = None
    confirmed_at: datetime | None = None
    scheduled_at: datetime | None = None
    otw_timestamp: datetime | None = None
    arrived_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    # Money / weight
    customer_invoice: Invoice | None = None
    partner_invoice: Invoice | None = None
    commission: float | None = None
    total_scrap_weight: float | None = None
    invoice_status: str | None = None  # pending, approved, rejected


class Order(OrderBase):
    id: str
    created_at: datetime | None = None


class OrderCreate(OrderBase):
    id: str | None = None
    created_at: datetime | None = None  # defaults to now


class OrderUpdate(CamelModel):
    """Partial update — only fields present in the payload are applied."""

    customer_name: str | None = None
    customer_phone: str | None = None
    area: str | None = None
    address: str | None = None
    pickup_date: datetime | None = None
    pickup_slot: str | None = None
    scrap_category: str | None = None
    description: str | None = None
    status: OrderStatus | None = None
    order_source: str | None = None
    partner_id: str | None = None
    partner_name: str | None = None
    cancel_reason: str | None = None
    priced_at: datetime | None = None
    assigned_at: datetime | None = None
    confirmed_at: datetime | None = None
    scheduled_at: datetime | None = None
    otw_timestamp: datetime | None = None
    arrived_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    customer_invoice: Invoice | None = None
    partner_invoice: Invoice | None = None
    commission: float | None = None
    total_scrap_weight: float | None = None
    invoice_status: str | None = None


class OrderListResponse(CamelModel):
    items: list[Order]
    total: int
