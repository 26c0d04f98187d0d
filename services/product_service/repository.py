from shared.store import PRODUCTS, DocumentStore, Record

class ProductRepository:

    @staticmethod
    async def create_product(store: DocumentStore, record: Record) -> str:
        return await store.insert(PRODUCTS, record)

    @staticmethod
    async def get_all_products(store: DocumentStore) -> list[Record]:
        return await store.list_all(PRODUCTS)

