from fastapi import FastAPI
from shared.http import register_error_handlers
from .router import router, public_router

report_app = FastAPI(title="Report Service", version="1.0.0")

register_error_handlers(report_app)

report_app.include_router(public_router)
report_app.include_router(router)
