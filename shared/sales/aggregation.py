"""
Aggregation engine for settlement, accounting and archive totals.

Every figure that ends up on a settlement report, in an accounting export or
in archive metadata is produced here, so two consumers fed the same orders
always print the same numbers. All functions are pure: no I/O, no exceptions
for malformed records (they are skipped), zero-valued results for empty
input.

Amounts are Decimals quantised to cents on the way in (see money.to_money),
so sums are exact; only averages are rounded, half-up, to 2 places.
"""
from collections.abc import Callable, Iterable, Mapping
from datetime import date, tzinfo
from decimal import Decimal

from pydantic import BaseModel

from .models import LineItem, Order, PaymentMode
from .money import ZERO, money_div, money_sum
from .timeutils import day_window, parse_timestamp

UNCATEGORIZED = "Uncategorized"
UNKNOWN_STAFF = "Unknown"
UNKNOWN_PAYMENT = "Unknown"

CategoryLookup = Callable[[str], str | None] | Mapping[str, str]


class PaymentMethodTotal(BaseModel):
    method: str
    count: int = 0
    total: Decimal = ZERO


class TaxTotals(BaseModel):
    tax: Decimal = ZERO
    net: Decimal = ZERO
    gross: Decimal = ZERO


class ProductSales(BaseModel):
    name: str
    quantity: int = 0
    revenue: Decimal = ZERO


class CategorySales(BaseModel):
    category: str
    items_sold: int = 0
    revenue: Decimal = ZERO


class StaffPerformance(BaseModel):
    staff: str
    orders: int = 0
    revenue: Decimal = ZERO
    average_order_value: Decimal = ZERO


class HourlySales(BaseModel):
    hour: str
    orders: int = 0
    revenue: Decimal = ZERO


class DriftEntry(BaseModel):
    order_id: str | None
    subtotal: Decimal
    items_total: Decimal
    difference: Decimal


# --- Filters ---

def filter_by_date_range(orders: Iterable[Order], start: date, end: date, tz: tzinfo | None = None) -> list[Order]:
    """Keep orders created within [startOfDay(start), endOfDay(end)].

    Orders whose timestamp is missing or unparsable are dropped.
    """
    window_start, window_end = day_window(start, end, tz)
    kept = []
    for order in orders:
        ts = parse_timestamp(order.created_at, window_start.tzinfo)
        if ts is not None and window_start <= ts <= window_end:
            kept.append(order)
    return kept


def filter_excluding_cancelled(orders: Iterable[Order]) -> list[Order]:
    return [o for o in orders if not o.is_cancelled]


# --- Order level ---

def total_revenue(orders: Iterable[Order]) -> Decimal:
    return money_sum(o.total for o in orders)


def average_order_value(orders: Iterable[Order]) -> Decimal:
    orders = list(orders)
    return money_div(total_revenue(orders), len(orders))


def _normalise_mode(raw: str) -> str:
    label = (raw or "").strip()
    if not label:
        return UNKNOWN_PAYMENT
    for mode in PaymentMode:
        if label.lower() == mode.value.lower():
            return mode.value
    return label


def sum_by_payment_method(orders: Iterable[Order]) -> dict[str, PaymentMethodTotal]:
    """Count and stored `total` per payment method.

    Cash, Card and Online are always present; other recorded modes follow in
    first-seen order.
    """
    buckets = {mode.value: PaymentMethodTotal(method=mode.value) for mode in PaymentMode}
    for order in orders:
        method = _normalise_mode(order.payment_mode)
        bucket = buckets.setdefault(method, PaymentMethodTotal(method=method))
        bucket.count += 1
        bucket.total += order.total
    return buckets


def tax_and_net_totals(orders: Iterable[Order]) -> TaxTotals:
    totals = TaxTotals()
    for order in orders:
        totals.tax += order.tax
        totals.net += order.subtotal
        totals.gross += order.total
    return totals


def staff_label(order: Order) -> str:
    return (order.staff_name or "").strip() or UNKNOWN_STAFF


def filter_by_staff(orders: Iterable[Order], staff: str) -> list[Order]:
    """Orders rung up by `staff`, matched the way staff_performance groups them."""
    wanted = staff.strip() or UNKNOWN_STAFF
    return [o for o in orders if staff_label(o) == wanted]


def staff_performance(orders: Iterable[Order]) -> list[StaffPerformance]:
    groups: dict[str, StaffPerformance] = {}
    for order in orders:
        staff = staff_label(order)
        entry = groups.setdefault(staff, StaffPerformance(staff=staff))
        entry.orders += 1
        entry.revenue += order.total
    for entry in groups.values():
        entry.average_order_value = money_div(entry.revenue, entry.orders)
    return sorted(groups.values(), key=lambda e: e.revenue, reverse=True)


def hourly_breakdown(orders: Iterable[Order], tz: tzinfo | None = None) -> list[HourlySales]:
    groups: dict[str, HourlySales] = {}
    for order in orders:
        ts = parse_timestamp(order.created_at, tz)
        if ts is None:
            continue
        hour = f"{ts.hour:02d}:00"
        entry = groups.setdefault(hour, HourlySales(hour=hour))
        entry.orders += 1
        entry.revenue += order.total
    return [groups[h] for h in sorted(groups)]


# --- Line item level ---

def items_sold(items: Iterable[LineItem]) -> int:
    return sum(item.quantity for item in items)


def top_products_by_revenue(items: Iterable[LineItem], limit: int = 10) -> list[ProductSales]:
    """Group by denormalised product name; stable on revenue ties."""
    groups: dict[str, ProductSales] = {}
    for item in items:
        entry = groups.setdefault(item.product_name, ProductSales(name=item.product_name))
        entry.quantity += item.quantity
        entry.revenue += item.total
    ranked = sorted(groups.values(), key=lambda e: e.revenue, reverse=True)
    return ranked[:limit]


def _resolve(lookup: CategoryLookup, name: str) -> str | None:
    if isinstance(lookup, Mapping):
        return lookup.get(name)
    return lookup(name)


def category_breakdown(items: Iterable[LineItem], lookup: CategoryLookup) -> list[CategorySales]:
    groups: dict[str, CategorySales] = {}
    for item in items:
        category = _resolve(lookup, item.product_name) or UNCATEGORIZED
        entry = groups.setdefault(category, CategorySales(category=category))
        entry.items_sold += item.quantity
        entry.revenue += item.total
    return sorted(groups.values(), key=lambda e: e.revenue, reverse=True)


def line_item_drift(orders: Iterable[Order], items_by_order: Mapping[str, list[LineItem]]) -> list[DriftEntry]:
    """Orders whose stored subtotal disagrees with their line totals.

    Reported as found; neither side is corrected.
    """
    drift = []
    for order in orders:
        items = items_by_order.get(order.ref, [])
        items_total = money_sum(item.total for item in items)
        if items_total != order.subtotal:
            drift.append(DriftEntry(
                order_id=order.ref,
                subtotal=order.subtotal,
                items_total=items_total,
                difference=order.subtotal - items_total,
            ))
    return drift
