from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Iterable

import structlog
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from .money import Money, ZERO

logger = structlog.get_logger(__name__)


class PaymentMode(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    ONLINE = "Online"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    CANCELLED = "Cancelled"


def _coerce_timestamp(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return None


def _coerce_quantity(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _coerce_label(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return "" if value is None else str(value)


Timestamp = Annotated[str | None, BeforeValidator(_coerce_timestamp)]
Quantity = Annotated[int, BeforeValidator(_coerce_quantity)]
Label = Annotated[str, BeforeValidator(_coerce_label)]


class LineItem(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str | None = None
    order_id: str | None = None
    product_id: str | None = None
    product_name: str = "Unknown Product"
    quantity: Quantity = 0
    price: Money = ZERO
    total: Money = ZERO


class Order(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str | None = None
    created_at: Timestamp = None
    customer_name: str | None = None
    staff_name: str | None = None
    payment_mode: Label = ""
    payment_status: Label = PaymentStatus.PENDING.value
    subtotal: Money = ZERO
    tax: Money = ZERO
    total: Money = ZERO

    @property
    def is_cancelled(self) -> bool:
        return self.payment_status.strip().lower() == PaymentStatus.CANCELLED.value.lower()

    @property
    def ref(self) -> str | None:
        """Id under which this order was created in the live store."""
        return self.id


class ArchivedOrder(Order):
    original_order_id: str
    archived_date: str
    archived_at: str
    order_items: list[LineItem] = Field(default_factory=list)

    @property
    def ref(self) -> str | None:
        return self.original_order_id


class ArchiveMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    archive_date: str
    archived_at: str
    total_orders: int = 0
    total_revenue: Money = ZERO
    order_ids: list[str] = Field(default_factory=list)


def _parse_many(model, records: Iterable[dict]) -> list:
    parsed = []
    for record in records:
        try:
            parsed.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning("sales.record_skipped", model=model.__name__, record_id=record.get("id"), error=str(e))
    return parsed


def parse_orders(records: Iterable[dict]) -> list[Order]:
    return _parse_many(Order, records)


def parse_line_items(records: Iterable[dict]) -> list[LineItem]:
    return _parse_many(LineItem, records)


def parse_archived_orders(records: Iterable[dict]) -> list[ArchivedOrder]:
    return _parse_many(ArchivedOrder, records)
