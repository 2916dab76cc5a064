"""
Docker Pool Service - pre-warmed disposable containers over HTTP
"""
import asyncio
import logging
from contextlib import asynccontextmanager

import docker.errors
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import uvicorn

from .core.config import get_settings
from .core.exceptions import LifecycleError
from .core.lifecycle import DockerLifecycleClient
from .core.pool import create_pool
from .core.readiness import ReadinessProber
from .api import pool as pool_api

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    app.state.pool = None

    if settings.pool_image:
        logger.info(f"Creating pool {settings.pool_basename} for {settings.pool_image}")
        try:
            prober = ReadinessProber(
                attempts=settings.ready_attempts,
                interval=settings.ready_interval,
                request_timeout=settings.ready_request_timeout,
            )
            app.state.pool = create_pool(
                settings.pool_size,
                settings.pool_basename,
                DockerLifecycleClient(prober=prober),
                image=settings.pool_image,
                port=settings.pool_container_port,
                path=settings.pool_path,
            )
        except docker.errors.DockerException as e:
            logger.error(f"Docker not available: {e}")
            logger.info("Starting without a container pool")
    else:
        logger.info("No pool image configured, starting without a container pool")

    yield

    # Shutdown
    logger.info("Shutting down pool service")

    if app.state.pool is not None:
        logger.info("Releasing container pool...")
        await app.state.pool.release()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Mount Prometheus metrics
if settings.enable_metrics:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

# Include routers
app.include_router(pool_api.router, prefix="/api/v1")

# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
        }
    )

# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "endpoints": {
            "acquire": "/api/v1/pool/acquire",
            "acquire_url": "/api/v1/pool/acquire-url",
            "release": "/api/v1/pool/release",
            "status": "/api/v1/pool/status",
            "health": "/health",
            "metrics": "/metrics" if settings.enable_metrics else None,
            "docs": "/docs" if settings.debug else None,
        }
    }

# Health check
@app.get("/health")
async def health(request: Request):
    """Health check endpoint"""
    pool = getattr(request.app.state, "pool", None)

    # Check Docker
    docker_healthy = False
    docker_version = None
    if pool is not None:
        try:
            docker_version = await asyncio.to_thread(pool.client.version)
            docker_healthy = True
        except LifecycleError as e:
            logger.warning(f"Docker health check failed: {e}")

    pool_status = pool.status().to_dict() if pool is not None else None
    overall_healthy = pool is None or (docker_healthy and not pool.closed)

    return {
        "status": "healthy" if overall_healthy else "degraded",
        "service": "docker-pool",
        "version": settings.app_version,
        "checks": {
            "docker": docker_healthy if pool is not None else None,
            "docker_version": docker_version,
        },
        "pool": pool_status,
    }

def main():
    """Main entry point"""
    uvicorn.run(
        "docker_pool.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.workers if not settings.debug else 1,
        log_level="info" if not settings.debug else "debug",
    )

if __name__ == "__main__":
    main()
