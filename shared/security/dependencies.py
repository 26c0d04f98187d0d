import secrets
import warnings

import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from shared.config.settings import INTERNAL_API_KEY

logger = structlog.get_logger(__name__)

INSECURE_DEFAULT_KEY = "insecure-default-change-me"

if not INTERNAL_API_KEY:
    warnings.warn(
        "INTERNAL_API_KEY is not set; back-office routes accept the insecure default key. "
        "Set this env var in production!",
        stacklevel=2,
    )

_operator_key: str = INTERNAL_API_KEY or INSECURE_DEFAULT_KEY

# Shared by the back-office UI and operators running archive/report calls
api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)


def verify_api_key(provided_key: str | None) -> bool:
    """Constant-time comparison against the configured operator key."""
    if not provided_key:
        return False
    return secrets.compare_digest(str(provided_key), _operator_key)


async def verify_internal_api_key(request: Request, api_key: str | None = Depends(api_key_header)) -> bool:
    """Dependency guarding every back-office route."""
    if not verify_api_key(api_key):
        logger.warning("security.api_key_rejected", path=request.url.path, key_present=bool(api_key))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Internal-API-Key header"
        )
    return True
