from fastapi import APIRouter, Depends, HTTPException
from shared.security import verify_internal_api_key
from shared.store import DocumentStore, get_store
from shared.sales import Order
from .schemas import OrderCreate, OrderResponse, StatusUpdate
from .service import OrderService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()

@public_router.get("/health")
async def health_check():
    return {"service": "order", "status": "running"}

@router.post("/", response_model=OrderResponse, status_code=201)
async def create_order(order: OrderCreate, store: DocumentStore = Depends(get_store)):
    try:
        return await OrderService.create_order(store, order)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/", response_model=list[Order])
async def list_orders(store: DocumentStore = Depends(get_store)):
    return await OrderService.list_orders(store)

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, store: DocumentStore = Depends(get_store)):
    order = await OrderService.get_order(store, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_status(order_id: str, payload: StatusUpdate, store: DocumentStore = Depends(get_store)):
    order = await OrderService.update_status(store, order_id, payload.payment_status)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

@router.patch("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, store: DocumentStore = Depends(get_store)):
    order = await OrderService.cancel_order(store, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
