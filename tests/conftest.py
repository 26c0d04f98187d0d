import asyncio
import os

# Settings are read at import time; pin them before anything imports shared.*
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("STORE_TIMEZONE", "UTC")
os.environ.setdefault("TAX_RATE", "5")
os.environ["ARCHIVE_SCHEDULER_ENABLED"] = "false"

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from shared.config.database import create_all
from shared.store import ORDER_ITEMS, ORDERS, PRODUCTS, SqlDocumentStore, StoreWriteFailure

API_HEADERS = {"X-Internal-API-Key": os.environ["INTERNAL_API_KEY"]}


@pytest.fixture
async def store(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await create_all(engine)
    yield SqlDocumentStore(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


class FlakyStore:
    """Wraps a real store and injects write failures, slow calls or stalls after a commit."""

    def __init__(self, inner):
        self.inner = inner
        self.failing: set[tuple] = set()   # (op, collection) or (op, collection, doc_id)
        self.slow: dict[tuple, float] = {}  # (op, collection) -> seconds before the call
        self.linger: dict[tuple, float] = {}  # (op, collection) -> seconds after the call commits

    def fail(self, op, collection, doc_id=None):
        self.failing.add((op, collection) if doc_id is None else (op, collection, doc_id))

    async def _gate(self, op, collection, doc_id=None):
        if (op, collection) in self.slow:
            await asyncio.sleep(self.slow[(op, collection)])
        if (op, collection) in self.failing or (op, collection, doc_id) in self.failing:
            raise StoreWriteFailure(collection, f"injected {op} failure")

    async def list_all(self, collection):
        await self._gate("list_all", collection)
        return await self.inner.list_all(collection)

    async def list_where(self, collection, field, value):
        await self._gate("list_where", collection)
        return await self.inner.list_where(collection, field, value)

    async def get(self, collection, doc_id):
        return await self.inner.get(collection, doc_id)

    async def insert(self, collection, record):
        await self._gate("insert", collection)
        return await self.inner.insert(collection, record)

    async def update(self, collection, doc_id, fields):
        await self._gate("update", collection, doc_id)
        return await self.inner.update(collection, doc_id, fields)

    async def delete(self, collection, doc_id):
        await self._gate("delete", collection, doc_id)
        await self.inner.delete(collection, doc_id)
        if ("delete", collection) in self.linger:
            await asyncio.sleep(self.linger[("delete", collection)])


@pytest.fixture
def flaky(store):
    return FlakyStore(store)


async def seed_order(
    store,
    created_at,
    total,
    tax="0.00",
    payment_mode="Cash",
    payment_status="Paid",
    staff_name=None,
    items=None,
):
    """Insert an order plus line items straight into the live store.

    `items` is a list of (product_name, quantity, unit_price); by default a
    single line carrying the whole subtotal.
    """
    subtotal = f"{float(total) - float(tax):.2f}"
    order_id = await store.insert(ORDERS, {
        "created_at": created_at,
        "customer_name": None,
        "staff_name": staff_name,
        "payment_mode": payment_mode,
        "payment_status": payment_status,
        "subtotal": subtotal,
        "tax": str(tax),
        "total": str(total),
    })
    for name, quantity, price in items or [("House Blend", 1, subtotal)]:
        await store.insert(ORDER_ITEMS, {
            "order_id": order_id,
            "product_id": None,
            "product_name": name,
            "quantity": quantity,
            "price": str(price),
            "total": f"{quantity * float(price):.2f}",
        })
    return order_id


async def seed_product(store, name, category, price="10.00"):
    return await store.insert(PRODUCTS, {"name": name, "category": category, "price": price, "stock": 10})


async def seed_reference_day(store):
    """Three orders on 2024-01-15: 100 Cash, 50 Card, 25 Cash."""
    return [
        await seed_order(store, "2024-01-15T09:15:00", "100.00", "10.00", "Cash", staff_name="Amira"),
        await seed_order(store, "2024-01-15T13:40:00", "50.00", "5.00", "Card", staff_name="Omar"),
        await seed_order(store, "2024-01-15T21:05:00", "25.00", "2.50", "Cash", staff_name="Amira"),
    ]
