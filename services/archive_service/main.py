from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from shared.http import register_error_handlers
from shared.security import limiter
from .router import router, public_router

archive_app = FastAPI(title="Archive Service", version="1.0.0")

# --- SECURITY SETUP ---
archive_app.state.limiter = limiter
archive_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_error_handlers(archive_app)

archive_app.include_router(public_router)
archive_app.include_router(router)
