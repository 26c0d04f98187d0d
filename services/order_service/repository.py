from shared.store import ORDERS, ORDER_ITEMS, DocumentStore, Record

class OrderRepository:
    @staticmethod
    async def create_order(store: DocumentStore, record: Record) -> str:
        return await store.insert(ORDERS, record)

    @staticmethod
    async def add_item(store: DocumentStore, record: Record) -> str:
        return await store.insert(ORDER_ITEMS, record)

    @staticmethod
    async def get_order(store: DocumentStore, order_id: str) -> Record | None:
        return await store.get(ORDERS, order_id)

    @staticmethod
    async def get_items(store: DocumentStore, order_id: str) -> list[Record]:
        return await store.list_where(ORDER_ITEMS, "order_id", order_id)

    @staticmethod
    async def list_orders(store: DocumentStore) -> list[Record]:
        return await store.list_all(ORDERS)

    @staticmethod
    async def update_order(store: DocumentStore, order_id: str, fields: Record):
        await store.update(ORDERS, order_id, fields)

    @staticmethod
    async def delete_order(store: DocumentStore, order_id: str):
        await store.delete(ORDERS, order_id)

    @staticmethod
    async def delete_item(store: DocumentStore, item_id: str):
        await store.delete(ORDER_ITEMS, item_id)
