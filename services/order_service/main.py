from fastapi import FastAPI
from shared.http import register_error_handlers
from .router import router, public_router

order_app = FastAPI(title="Order Service", version="1.0.0")

register_error_handlers(order_app)

order_app.include_router(public_router)
order_app.include_router(router)
