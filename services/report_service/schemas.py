from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field, computed_field
from shared.sales import LineItem, Order
from shared.sales.aggregation import (
    CategorySales,
    DriftEntry,
    HourlySales,
    PaymentMethodTotal,
    ProductSales,
    StaffPerformance,
)
from shared.sales.money import ZERO

class ReportSource(str, Enum):
    LIVE = "live"
    ARCHIVE = "archive"
    BOTH = "both"

class SettlementReport(BaseModel):
    start_date: str
    end_date: str
    source: ReportSource
    currency: str
    generated_at: str

    total_revenue: Decimal = ZERO
    total_orders: int = 0
    payment_methods: list[PaymentMethodTotal] = Field(default_factory=list)
    cash_expected: Decimal = ZERO
    tax_collected: Decimal = ZERO
    net_sales: Decimal = ZERO
    items_sold: int = 0
    average_order_value: Decimal = ZERO
    top_products: list[ProductSales] = Field(default_factory=list)
    category_breakdown: list[CategorySales] = Field(default_factory=list)
    staff_performance: list[StaffPerformance] = Field(default_factory=list)
    hourly_breakdown: list[HourlySales] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)

    @computed_field
    @property
    def is_empty(self) -> bool:
        return self.total_orders == 0

class LedgerEntry(BaseModel):
    order_id: str | None
    created_at: str | None
    customer_name: str | None = None
    staff_name: str | None = None
    payment_mode: str
    payment_status: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    archived: bool = False
    items: list[LineItem] = Field(default_factory=list)

class AccountingSummary(BaseModel):
    gross_revenue: Decimal = ZERO
    net_sales: Decimal = ZERO
    tax_collected: Decimal = ZERO
    total_orders: int = 0
    cancelled_orders: int = 0
    average_order_value: Decimal = ZERO
    payment_methods: list[PaymentMethodTotal] = Field(default_factory=list)
    category_breakdown: list[CategorySales] = Field(default_factory=list)

class AccountingExport(BaseModel):
    start_date: str
    end_date: str
    source: ReportSource
    currency: str
    generated_at: str
    summary: AccountingSummary
    ledger: list[LedgerEntry] = Field(default_factory=list)
    # Orders whose subtotal disagrees with their line items; reported, not fixed
    drift: list[DriftEntry] = Field(default_factory=list)

class StaffReport(BaseModel):
    """One staff member's shift: their sales and what their drawer should hold."""
    staff: str
    start_date: str
    end_date: str
    source: ReportSource
    currency: str
    generated_at: str

    sales: list[LedgerEntry] = Field(default_factory=list)
    payment_methods: list[PaymentMethodTotal] = Field(default_factory=list)
    cash_sales: Decimal = ZERO
    card_sales: Decimal = ZERO
    total_transactions: int = 0
    gross_sales: Decimal = ZERO
    net_sales: Decimal = ZERO
    tax_collected: Decimal = ZERO
    average_order_value: Decimal = ZERO
    # First and last sale in range; None when there were no sales
    session_start: str | None = None
    session_end: str | None = None

    @computed_field
    @property
    def is_empty(self) -> bool:
        return self.total_transactions == 0
