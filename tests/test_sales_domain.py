from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from shared.sales import ArchivedOrder, LineItem, Order, parse_orders, to_money
from shared.sales.money import money_div, money_sum
from shared.sales.timeutils import day_window, local_date_of, parse_timestamp, yesterday

DUBAI = ZoneInfo("Asia/Dubai")


class TestMoney:
    def test_coerces_numbers_and_strings(self):
        assert to_money(100) == Decimal("100.00")
        assert to_money("12.5") == Decimal("12.50")
        assert to_money(0.1 + 0.2) == Decimal("0.30")

    def test_rounds_half_up(self):
        assert to_money("2.675") == Decimal("2.68")
        assert to_money("-1.005") == Decimal("-1.01")

    def test_garbage_is_zero(self):
        for value in (None, "", "abc", float("nan"), True):
            assert to_money(value) == Decimal("0.00")

    def test_sum_of_many_small_amounts_is_exact(self):
        assert money_sum([0.1] * 200) == Decimal("20.00")

    def test_division(self):
        assert money_div(Decimal("10.00"), 3) == Decimal("3.33")
        assert money_div(Decimal("10.00"), 0) == Decimal("0.00")


class TestTimestamps:
    def test_naive_timestamp_is_store_local(self):
        ts = parse_timestamp("2024-01-15T23:30:00", DUBAI)
        assert ts.tzinfo is DUBAI
        assert ts.hour == 23

    def test_aware_timestamp_is_converted(self):
        # 21:30 UTC is already the next day in Dubai (+04:00)
        ts = parse_timestamp("2024-01-15T21:30:00Z", DUBAI)
        assert ts.date() == date(2024, 1, 16)
        assert ts.hour == 1

    def test_unparsable(self):
        assert parse_timestamp("yesterday-ish") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp(12345) is None

    def test_day_window_is_inclusive(self):
        start, end = day_window(date(2024, 1, 15), tz=timezone.utc)
        assert start == datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)
        assert end == datetime(2024, 1, 15, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_local_date_of(self):
        assert local_date_of("2024-01-15T21:30:00+00:00", DUBAI) == "2024-01-16"
        assert local_date_of("garbage", DUBAI) is None

    def test_yesterday(self):
        assert yesterday(datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc)) == date(2024, 2, 29)


class TestRecords:
    def test_order_is_lenient(self):
        order = Order.model_validate({
            "id": "o1",
            "created_at": datetime(2024, 1, 15, 9, 0),
            "total": None,
            "payment_mode": None,
            "table": 7,
        })
        assert order.created_at == "2024-01-15T09:00:00"
        assert order.total == Decimal("0.00")
        assert order.payment_mode == ""
        assert order.model_extra == {"table": 7}

    def test_cancelled_is_case_insensitive(self):
        assert Order(payment_status="cancelled").is_cancelled
        assert not Order(payment_status="Paid").is_cancelled

    def test_line_item_quantity_coercion(self):
        assert LineItem(quantity="3").quantity == 3
        assert LineItem(quantity="lots").quantity == 0

    def test_archived_order_ref_is_original_id(self):
        archived = ArchivedOrder(
            id="a1", original_order_id="o1", archived_date="2024-01-15", archived_at="2024-01-16T02:00:00"
        )
        assert archived.ref == "o1"

    def test_parse_orders_skips_invalid_records(self):
        orders = parse_orders([{"id": "o1", "total": "5"}, {"id": "o2", "customer_name": ["not", "a", "name"]}])
        assert [o.id for o in orders] == ["o1"]
