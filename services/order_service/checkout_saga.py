"""
Checkout writes an Order and its LineItems as separate store calls. The
store cannot commit them together, so the write runs as a saga: if any line
item fails to persist, everything written so far is removed again and the
order never becomes visible in a half-written state for long.
"""
from shared.saga import SagaOrchestrator
from .repository import OrderRepository

# --- ACTIONS ---

async def insert_order(ctx: dict):
    ctx["order_id"] = await OrderRepository.create_order(ctx["store"], ctx["order_record"])

async def insert_items(ctx: dict):
    store, order_id = ctx["store"], ctx["order_id"]
    for line in ctx["item_records"]:
        item_id = await OrderRepository.add_item(store, {**line, "order_id": order_id})
        ctx["item_ids"].append(item_id)


# --- COMPENSATIONS ---

async def rollback_order(ctx: dict):
    # insert_items may have failed halfway; its partial writes are undone here
    store = ctx["store"]
    for item_id in ctx["item_ids"]:
        await OrderRepository.delete_item(store, item_id)
    if ctx.get("order_id"):
        await OrderRepository.delete_order(store, ctx["order_id"])


# --- BUILDER FACTORY ---

def build_checkout_saga() -> SagaOrchestrator:
    saga = SagaOrchestrator("checkout")
    saga.add_step("insert_order", insert_order, rollback_order)
    saga.add_step("insert_items", insert_items, None) # Partial inserts are cleaned by rollback_order
    return saga
