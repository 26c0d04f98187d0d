from shared.sales import to_money
from shared.store import DocumentStore
from .repository import ProductRepository
from .schemas import ProductCreate, ProductResponse

class ProductService:

    @staticmethod
    async def create_product(store: DocumentStore, data: ProductCreate) -> ProductResponse:
        if to_money(data.price) < 0:
            raise ValueError("Price cannot be negative.")
        record = {
            "name": data.name.strip(),
            "category": (data.category or "").strip() or None,
            "price": str(to_money(data.price)),
            "stock": data.stock,
        }
        product_id = await ProductRepository.create_product(store, record)
        return ProductResponse(id=product_id, **record)

    @staticmethod
    async def list_products(store: DocumentStore) -> list[ProductResponse]:
        return [ProductResponse.model_validate(p) for p in await ProductRepository.get_all_products(store)]

    @staticmethod
    async def category_lookup(store: DocumentStore) -> dict[str, str]:
        """Snapshot of product name -> category for report breakdowns.

        Line items only carry the product name, so the join is by name. Later
        products win when two share a name; uncategorised products are left
        out and fall into the "Uncategorized" bucket downstream.
        """
        lookup = {}
        for product in await ProductRepository.get_all_products(store):
            name, category = product.get("name"), product.get("category")
            if name and category:
                lookup[name] = category
        return lookup
