from decimal import Decimal, ROUND_HALF_UP

import structlog
from shared.config.settings import TAX_RATE
from shared.sales import PaymentStatus, parse_line_items, parse_orders, to_money
from shared.sales.money import CENT, money_sum
from shared.sales.timeutils import now
from shared.store import DocumentStore
from .checkout_saga import build_checkout_saga
from .repository import OrderRepository
from .schemas import OrderCreate, OrderResponse

logger = structlog.get_logger(__name__)


def _price_lines(data: OrderCreate) -> list[dict]:
    if not data.items:
        raise ValueError("Order must contain at least one item.")
    lines = []
    for item in data.items:
        if item.quantity <= 0:
            raise ValueError(f"Invalid quantity for {item.product_name}.")
        price = to_money(item.unit_price)
        if price < 0:
            raise ValueError(f"Invalid price for {item.product_name}.")
        lines.append({
            "product_id": item.product_id,
            "product_name": item.product_name,
            "quantity": item.quantity,
            "price": str(price),
            "total": str(price * item.quantity),
        })
    return lines


class OrderService:
    @staticmethod
    async def create_order(store: DocumentStore, data: OrderCreate) -> OrderResponse:
        lines = _price_lines(data)
        subtotal = money_sum(line["total"] for line in lines)
        tax = (subtotal * Decimal(str(TAX_RATE)) / 100).quantize(CENT, rounding=ROUND_HALF_UP)
        created_at = data.created_at or now()

        ctx = {
            "store": store,
            "order_record": {
                "created_at": created_at.isoformat(),
                "customer_name": data.customer_name,
                "staff_name": data.staff_name,
                "payment_mode": data.payment_mode.value,
                "payment_status": data.payment_status.value,
                "subtotal": str(subtotal),
                "tax": str(tax),
                "total": str(subtotal + tax),
            },
            "item_records": lines,
            "item_ids": [],
        }
        await build_checkout_saga().execute(ctx)
        logger.info("order.created", order_id=ctx["order_id"], total=str(subtotal + tax), items=len(lines))
        return await OrderService.get_order(store, ctx["order_id"])

    @staticmethod
    async def get_order(store: DocumentStore, order_id: str) -> OrderResponse | None:
        record = await OrderRepository.get_order(store, order_id)
        if not record:
            return None
        items = parse_line_items(await OrderRepository.get_items(store, order_id))
        return OrderResponse.model_validate({**record, "items": items})

    @staticmethod
    async def list_orders(store: DocumentStore):
        return parse_orders(await OrderRepository.list_orders(store))

    @staticmethod
    async def update_status(store: DocumentStore, order_id: str, status: PaymentStatus) -> OrderResponse | None:
        record = await OrderRepository.get_order(store, order_id)
        if not record:
            return None
        await OrderRepository.update_order(store, order_id, {"payment_status": status.value})
        logger.info("order.status_changed", order_id=order_id, old=record.get("payment_status"), new=status.value)
        return await OrderService.get_order(store, order_id)

    @staticmethod
    async def cancel_order(store: DocumentStore, order_id: str) -> OrderResponse | None:
        return await OrderService.update_status(store, order_id, PaymentStatus.CANCELLED)
