from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from shared.sales import LineItem, Order, PaymentMode, PaymentStatus

class LineItemCreate(BaseModel):
    product_id: str | None = None
    product_name: str
    quantity: int
    unit_price: Decimal

class OrderCreate(BaseModel):
    customer_name: str | None = None
    staff_name: str | None = None
    payment_mode: PaymentMode
    payment_status: PaymentStatus = PaymentStatus.PAID
    items: list[LineItemCreate] = Field(default_factory=list)
    # Manual entry / backfill only; checkout leaves this empty
    created_at: datetime | None = None

class StatusUpdate(BaseModel):
    payment_status: PaymentStatus

class OrderResponse(Order):
    items: list[LineItem] = Field(default_factory=list)
