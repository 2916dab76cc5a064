"""
Pool API endpoints

Lets test suites in other processes acquire and release containers.
"""
import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from ..core.exceptions import (
    LifecycleError,
    PoolClosedError,
    PoolConfigurationError,
    PoolExhaustedError,
)
from ..core.pool import ContainerPool
from ..utils.auth import verify_api_key

router = APIRouter(prefix="/pool", tags=["pool"])

# acquire/release must not interleave on one pool
_pool_lock = asyncio.Lock()


class AcquireRequest(BaseModel):
    """Acquire request"""
    name: Optional[str] = Field(None, description="Container to recycle (defaults to the last acquired)")


class AcquireResponse(BaseModel):
    """Acquire response"""
    name: str
    url: Optional[str] = None


class ReleaseRequest(BaseModel):
    """Release request"""
    name: Optional[str] = Field(None, description="Acquired container to clean (defaults to the last acquired)")


class ReleaseResponse(BaseModel):
    """Release response"""
    released: bool


class PoolStatusResponse(BaseModel):
    """Pool status"""
    basename: str
    size: int
    image: Optional[str] = None
    port: Optional[str] = None
    path: Optional[str] = None
    pending: int
    ready: int
    last_name: Optional[str] = None
    closed: bool


def get_pool(request: Request) -> ContainerPool:
    """Pool created by the application lifespan"""
    pool = getattr(request.app.state, "pool", None)

    if pool is None:
        raise HTTPException(status_code=503, detail="No container pool configured")

    return pool


@router.post("/acquire", response_model=AcquireResponse)
async def acquire_container(
    request: AcquireRequest,
    pool: ContainerPool = Depends(get_pool),
    api_key: Optional[str] = Depends(verify_api_key),
):
    """Acquire the next ready container"""
    try:
        async with _pool_lock:
            name = await pool.acquire(request.name)
    except (PoolClosedError, PoolExhaustedError) as e:
        raise HTTPException(status_code=409, detail=str(e))

    return AcquireResponse(name=name)


@router.post("/acquire-url", response_model=AcquireResponse)
async def acquire_container_url(
    request: AcquireRequest,
    pool: ContainerPool = Depends(get_pool),
    api_key: Optional[str] = Depends(verify_api_key),
):
    """Acquire the next ready container and return its URL"""
    try:
        async with _pool_lock:
            url = await pool.acquire_url(request.name)
            name = pool.last_name
    except PoolConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (PoolClosedError, PoolExhaustedError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LifecycleError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return AcquireResponse(name=name, url=url)


@router.post("/release", response_model=ReleaseResponse)
async def release_pool(
    request: ReleaseRequest,
    pool: ContainerPool = Depends(get_pool),
    api_key: Optional[str] = Depends(verify_api_key),
):
    """Clean every container of the pool"""
    async with _pool_lock:
        await pool.release(request.name)

    return ReleaseResponse(released=True)


@router.get("/status", response_model=PoolStatusResponse)
async def get_pool_status(
    pool: ContainerPool = Depends(get_pool),
    api_key: Optional[str] = Depends(verify_api_key),
):
    """Get pool status"""
    status = pool.status().to_dict()

    if status["port"] is not None:
        status["port"] = str(status["port"])

    return PoolStatusResponse(**status)
