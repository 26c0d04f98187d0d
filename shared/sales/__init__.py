from .models import (
    ArchiveMetadata,
    ArchivedOrder,
    LineItem,
    Order,
    PaymentMode,
    PaymentStatus,
    parse_archived_orders,
    parse_line_items,
    parse_orders,
)
from .money import Money, to_money

__all__ = [
    "ArchiveMetadata",
    "ArchivedOrder",
    "LineItem",
    "Order",
    "PaymentMode",
    "PaymentStatus",
    "parse_archived_orders",
    "parse_line_items",
    "parse_orders",
    "Money",
    "to_money",
]
