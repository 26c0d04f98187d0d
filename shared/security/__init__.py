from .dependencies import verify_api_key, verify_internal_api_key
from .rate_limiter import limiter, operator_key

__all__ = [
    "verify_api_key",
    "verify_internal_api_key",
    "limiter",
    "operator_key"
]
