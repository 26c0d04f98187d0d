from fastapi import FastAPI
import structlog
from shared.config.database import create_all
from shared.config.settings import ARCHIVE_SCHEDULER_ENABLED
from shared.observability import setup_observability

# IMPORTANT: import models so they register with Base
from shared.store import models as store_models

from services.order_service.main import order_app
from services.product_service.main import product_app
from services.archive_service.main import archive_app
from services.archive_service.router import archive_scheduler
from services.report_service.main import report_app

logger = structlog.get_logger(__name__)

app = FastAPI(title="POS Back Office")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, "pos_backoffice")

@app.on_event("startup")
async def startup_event():
    await create_all()
    if ARCHIVE_SCHEDULER_ENABLED:
        archive_scheduler.start()
    else:
        logger.warning("scheduler.disabled", hint="set ARCHIVE_SCHEDULER_ENABLED=true to archive nightly")

@app.on_event("shutdown")
async def shutdown_event():
    await archive_scheduler.stop()

@app.get("/health")
async def health_check():
    return {"service": "pos_backoffice", "status": "running", "scheduler": archive_scheduler.state}

app.mount("/orders", order_app)
app.mount("/products", product_app)
app.mount("/archive", archive_app)
app.mount("/reports", report_app)
