import csv
import io
from datetime import tzinfo

from shared.sales.timeutils import parse_timestamp
from .schemas import AccountingExport

LEDGER_HEADER = [
    "Order ID", "Date", "Time", "Customer", "Staff", "Payment Method", "Status",
    "Product", "Quantity", "Unit Price", "Line Total",
    "Order Subtotal", "Order Tax", "Order Total", "Archived",
]


def _money(value) -> str:
    return f"{value:.2f}"


def render_accounting_csv(export: AccountingExport, tz: tzinfo | None = None) -> str:
    """One row per line item (one bare row for an order without items), then a summary block."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(LEDGER_HEADER)

    for entry in export.ledger:
        ts = parse_timestamp(entry.created_at, tz)
        order_cols = [
            entry.order_id,
            ts.strftime("%Y-%m-%d") if ts else "",
            ts.strftime("%H:%M") if ts else "",
            entry.customer_name or "Walk-in",
            entry.staff_name or "Unknown",
            entry.payment_mode or "N/A",
            entry.payment_status,
        ]
        totals_cols = [_money(entry.subtotal), _money(entry.tax), _money(entry.total), "yes" if entry.archived else "no"]
        if not entry.items:
            writer.writerow(order_cols + ["", "", "", ""] + totals_cols)
        for item in entry.items:
            writer.writerow(
                order_cols
                + [item.product_name, item.quantity, _money(item.price), _money(item.total)]
                + totals_cols
            )

    summary = export.summary
    writer.writerow([])
    writer.writerow(["Summary", f"{export.start_date} to {export.end_date}", export.currency])
    writer.writerow(["Gross Revenue", _money(summary.gross_revenue)])
    writer.writerow(["Net Sales", _money(summary.net_sales)])
    writer.writerow(["Tax Collected", _money(summary.tax_collected)])
    writer.writerow(["Orders", summary.total_orders])
    writer.writerow(["Cancelled Orders", summary.cancelled_orders])
    for method in summary.payment_methods:
        writer.writerow([f"{method.method} Sales", _money(method.total), method.count])
    return buffer.getvalue()
