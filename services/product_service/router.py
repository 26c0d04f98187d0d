from fastapi import APIRouter, Depends, HTTPException, Query
from shared.security import verify_internal_api_key
from shared.store import DocumentStore, get_store
from .schemas import ProductCreate, ProductResponse
from .service import ProductService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()

@public_router.get("/health")
async def health_check():
    return {"service": "product", "status": "running"}


@router.post("/", response_model=ProductResponse, status_code=201)
async def create_product(product: ProductCreate, store: DocumentStore = Depends(get_store)):
    try:
        return await ProductService.create_product(store, product)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/", response_model=list[ProductResponse])
async def list_products(
    category: str | None = Query(default=None),
    store: DocumentStore = Depends(get_store)
):
    products = await ProductService.list_products(store)
    if category:
        products = [p for p in products if (p.category or "").lower() == category.lower()]
    return products
