from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

def operator_key(request: Request) -> str:
    """
    Key function for SlowAPI.
    Back-office callers share one API key, so throttle per client address.
    """
    return f"ip:{get_remote_address(request)}"

limiter = Limiter(key_func=operator_key)
