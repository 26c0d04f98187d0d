"""
Per-order move from the live store to the archive store.

Steps run in this order: load line items, write the archive copy, delete the
line items, delete the order. The archive copy is the pivot: once it is
durable the order counts as archived, and every later step can simply be
repeated by the next run. A copy that already exists for the same original
order id is reused instead of written twice, which is what makes re-running
a day safe.

The copy is never rolled back. A failure before it leaves the live data
untouched; a failure after it, including a delete that committed and then
timed out, leaves a copy that the next run picks up to finish the purge.
"""
from shared.saga import SagaOrchestrator
from shared.store import ARCHIVED_ORDERS, ORDER_ITEMS, ORDERS, DocumentNotFound

# --- ACTIONS ---

async def load_line_items(ctx: dict):
    ctx["items"] = await ctx["store"].list_where(ORDER_ITEMS, "order_id", ctx["order_id"])

async def write_archive_copy(ctx: dict):
    store, order_id = ctx["store"], ctx["order_id"]
    existing = await store.list_where(ARCHIVED_ORDERS, "original_order_id", order_id)
    if existing:
        ctx["archive_id"] = existing[0]["id"]
        ctx["resumed"] = True
        return

    record = {k: v for k, v in ctx["order_record"].items() if k != "id"}
    record.update({
        "original_order_id": order_id,
        "archived_date": ctx["archived_date"],
        "archived_at": ctx["archived_at"],
        "order_items": ctx["items"],
    })
    ctx["archive_id"] = await store.insert(ARCHIVED_ORDERS, record)

async def purge_line_items(ctx: dict):
    for item in ctx["items"]:
        await _delete_if_present(ctx["store"], ORDER_ITEMS, item["id"])

async def purge_order(ctx: dict):
    await _delete_if_present(ctx["store"], ORDERS, ctx["order_id"])

async def _delete_if_present(store, collection: str, doc_id: str):
    try:
        await store.delete(collection, doc_id)
    except DocumentNotFound:
        pass # already gone: an earlier run got this far


# --- BUILDER FACTORY ---

def build_migration_saga(step_timeout: float | None = None) -> SagaOrchestrator:
    saga = SagaOrchestrator("archive_migration", step_timeout=step_timeout)
    saga.add_step("load_line_items", load_line_items, None) # Read-only
    saga.add_step("write_archive_copy", write_archive_copy, None) # Pivot: kept for the next run once written
    saga.add_step("purge_line_items", purge_line_items, None) # Past the pivot: finished by the next run
    saga.add_step("purge_order", purge_order, None)
    return saga
