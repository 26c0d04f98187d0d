from datetime import date, tzinfo

import structlog
from services.archive_service.service import ArchiveService
from services.product_service.service import ProductService
from shared.config.settings import CURRENCY
from shared.observability import pos_reports_generated_total
from shared.sales import ArchivedOrder, LineItem, Order, PaymentMode, parse_line_items, parse_orders
from shared.sales.money import ZERO
from shared.sales.aggregation import (
    UNKNOWN_STAFF,
    CategoryLookup,
    average_order_value,
    category_breakdown,
    filter_by_date_range,
    filter_by_staff,
    filter_excluding_cancelled,
    hourly_breakdown,
    items_sold,
    line_item_drift,
    staff_performance,
    sum_by_payment_method,
    tax_and_net_totals,
    top_products_by_revenue,
)
from shared.sales.timeutils import now, parse_day, parse_timestamp, store_tz
from shared.store import ORDER_ITEMS, ORDERS, DocumentStore
from .schemas import (
    AccountingExport,
    AccountingSummary,
    LedgerEntry,
    ReportSource,
    SettlementReport,
    StaffReport,
)

logger = structlog.get_logger(__name__)

TOP_PRODUCTS_LIMIT = 10


class ReportService:
    def __init__(
        self,
        store: DocumentStore,
        tz: tzinfo | None = None,
        category_lookup: CategoryLookup | None = None,
        currency: str = CURRENCY,
    ):
        self.store = store
        self.tz = tz or store_tz()
        self.category_lookup = category_lookup
        self.currency = currency

    async def build_settlement_report(
        self, start: date | str, end: date | str, source: ReportSource = ReportSource.LIVE
    ) -> SettlementReport:
        start, end = parse_day(start), parse_day(end)
        orders, items_by_order = await self._collect(start, end, source)
        lookup = await self._lookup()

        sales = filter_excluding_cancelled(orders)
        sold = [item for o in sales for item in items_by_order.get(o.ref, [])]
        by_method = sum_by_payment_method(sales)
        totals = tax_and_net_totals(sales)
        revenue = sum((m.total for m in by_method.values()), ZERO)

        pos_reports_generated_total.labels(kind="settlement").inc()
        logger.info("report.settlement", start=start.isoformat(), end=end.isoformat(), source=source.value, orders=len(sales))
        return SettlementReport(
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            source=source,
            currency=self.currency,
            generated_at=now(self.tz).isoformat(),
            total_revenue=revenue,
            total_orders=len(sales),
            payment_methods=list(by_method.values()),
            cash_expected=by_method[PaymentMode.CASH.value].total,
            tax_collected=totals.tax,
            net_sales=totals.net,
            items_sold=items_sold(sold),
            average_order_value=average_order_value(sales),
            top_products=top_products_by_revenue(sold, TOP_PRODUCTS_LIMIT),
            category_breakdown=category_breakdown(sold, lookup),
            staff_performance=staff_performance(sales),
            hourly_breakdown=hourly_breakdown(sales, self.tz),
            orders=sales,
        )

    async def build_accounting_export(
        self, start: date | str, end: date | str, source: ReportSource = ReportSource.LIVE
    ) -> AccountingExport:
        start, end = parse_day(start), parse_day(end)
        orders, items_by_order = await self._collect(start, end, source)
        lookup = await self._lookup()

        sales = filter_excluding_cancelled(orders)
        sold = [item for o in sales for item in items_by_order.get(o.ref, [])]
        totals = tax_and_net_totals(sales)

        summary = AccountingSummary(
            gross_revenue=totals.gross,
            net_sales=totals.net,
            tax_collected=totals.tax,
            total_orders=len(sales),
            cancelled_orders=len(orders) - len(sales),
            average_order_value=average_order_value(sales),
            payment_methods=list(sum_by_payment_method(sales).values()),
            category_breakdown=category_breakdown(sold, lookup),
        )
        # The ledger is unaggregated: cancelled orders stay in it with their status
        ledger = [self._ledger_entry(o, items_by_order) for o in orders]

        pos_reports_generated_total.labels(kind="accounting").inc()
        logger.info("report.accounting", start=start.isoformat(), end=end.isoformat(), source=source.value, ledger=len(ledger))
        return AccountingExport(
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            source=source,
            currency=self.currency,
            generated_at=now(self.tz).isoformat(),
            summary=summary,
            ledger=ledger,
            drift=line_item_drift(orders, items_by_order),
        )

    async def build_staff_report(
        self, staff: str, start: date | str, end: date | str, source: ReportSource = ReportSource.LIVE
    ) -> StaffReport:
        """Shift report for one staff member, cancelled sales left out."""
        start, end = parse_day(start), parse_day(end)
        staff = staff.strip() or UNKNOWN_STAFF
        orders, items_by_order = await self._collect(start, end, source)

        sales = filter_by_staff(filter_excluding_cancelled(orders), staff)
        by_method = sum_by_payment_method(sales)
        totals = tax_and_net_totals(sales)
        stamps = [ts for ts in (parse_timestamp(o.created_at, self.tz) for o in sales) if ts is not None]

        pos_reports_generated_total.labels(kind="staff").inc()
        logger.info("report.staff", staff=staff, start=start.isoformat(), end=end.isoformat(), orders=len(sales))
        return StaffReport(
            staff=staff,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            source=source,
            currency=self.currency,
            generated_at=now(self.tz).isoformat(),
            sales=[self._ledger_entry(o, items_by_order) for o in sales],
            payment_methods=list(by_method.values()),
            cash_sales=by_method[PaymentMode.CASH.value].total,
            card_sales=by_method[PaymentMode.CARD.value].total,
            total_transactions=len(sales),
            gross_sales=totals.gross,
            net_sales=totals.net,
            tax_collected=totals.tax,
            average_order_value=average_order_value(sales),
            session_start=min(stamps).isoformat() if stamps else None,
            session_end=max(stamps).isoformat() if stamps else None,
        )

    @staticmethod
    def _ledger_entry(order: Order, items_by_order: dict[str, list[LineItem]]) -> LedgerEntry:
        return LedgerEntry(
            order_id=order.ref,
            created_at=order.created_at,
            customer_name=order.customer_name,
            staff_name=order.staff_name,
            payment_mode=order.payment_mode,
            payment_status=order.payment_status,
            subtotal=order.subtotal,
            tax=order.tax,
            total=order.total,
            archived=isinstance(order, ArchivedOrder),
            items=items_by_order.get(order.ref, []),
        )

    async def _lookup(self) -> CategoryLookup:
        if self.category_lookup is not None:
            return self.category_lookup
        return await ProductService.category_lookup(self.store)

    async def _collect(
        self, start: date, end: date, source: ReportSource
    ) -> tuple[list[Order], dict[str, list[LineItem]]]:
        """Orders in range from the chosen store(s), keyed by original order id.

        With BOTH, an archived copy wins over a live record of the same order
        (possible while a partially failed archive run awaits its re-run).
        """
        orders: dict[str, Order] = {}
        items_by_order: dict[str, list[LineItem]] = {}

        if source in (ReportSource.ARCHIVE, ReportSource.BOTH):
            archive = ArchiveService(self.store, tz=self.tz)
            for archived in await archive.get_archived_orders_by_date_range(start, end):
                orders[archived.ref] = archived
                items_by_order[archived.ref] = archived.order_items

        if source in (ReportSource.LIVE, ReportSource.BOTH):
            live = filter_by_date_range(parse_orders(await self.store.list_all(ORDERS)), start, end, self.tz)
            live = [o for o in live if o.ref not in orders]
            if live:
                grouped: dict[str, list[LineItem]] = {}
                for item in parse_line_items(await self.store.list_all(ORDER_ITEMS)):
                    grouped.setdefault(item.order_id, []).append(item)
                for order in live:
                    orders[order.ref] = order
                    items_by_order[order.ref] = grouped.get(order.ref, [])

        ordered = sorted(orders.values(), key=self._sort_key)
        return ordered, items_by_order

    def _sort_key(self, order: Order) -> float:
        ts = parse_timestamp(order.created_at, self.tz)
        return ts.timestamp() if ts else float("-inf")
