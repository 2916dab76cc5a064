"""
API key check for the pool endpoints

Every pool endpoint can start or remove containers on the host, so callers
present the shared key in the ``X-API-Key`` header. Local test runs that
talk to the service over loopback may set
``DOCKER_POOL_REQUIRE_API_KEY=false`` to skip the check.
"""
import secrets
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from ..core.config import get_settings

API_KEY_HEADER = "X-API-Key"

pool_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


async def verify_api_key(api_key: Optional[str] = Security(pool_key_header)) -> Optional[str]:
    """
    Check the caller's key against the configured pool key.

    Returns:
        The presented key, or None when the check is disabled

    Raises:
        HTTPException: 401 without a key, 403 for a wrong one
    """
    settings = get_settings()
    if not settings.require_api_key:
        return None

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail=f"{API_KEY_HEADER} header is required to use the container pool",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    # constant time
    if not secrets.compare_digest(api_key.encode(), settings.api_key.encode()):
        raise HTTPException(status_code=403, detail="API key does not match the pool key")

    return api_key
