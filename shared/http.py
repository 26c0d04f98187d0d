from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog
from shared.store import StoreError

logger = structlog.get_logger(__name__)


async def store_error_handler(request: Request, exc: StoreError):
    logger.error("store.unavailable", path=request.url.path, collection=exc.collection, error=str(exc))
    return JSONResponse(status_code=503, content={"detail": "Document store unavailable, try again"})


def register_error_handlers(app: FastAPI):
    """Mounted sub-apps do not inherit handlers, so each one calls this."""
    app.add_exception_handler(StoreError, store_error_handler)
