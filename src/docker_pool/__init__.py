"""
Docker Pool

Pre-warmed pools of disposable Docker containers for test suites.
"""

from .core.exceptions import (
    DockerPoolError,
    LifecycleError,
    PoolClosedError,
    PoolConfigurationError,
    PoolError,
    PoolExhaustedError,
)
from .core.lifecycle import ContainerLifecycle, DockerLifecycleClient, LifecycleClient
from .core.pool import ContainerPool, PoolStatus, SingleContainerPool, create_pool
from .core.readiness import ReadinessProber

__version__ = "0.1.0"

__all__ = [
    "ContainerPool",
    "SingleContainerPool",
    "create_pool",
    "PoolStatus",
    "LifecycleClient",
    "DockerLifecycleClient",
    "ContainerLifecycle",
    "ReadinessProber",
    "DockerPoolError",
    "LifecycleError",
    "PoolError",
    "PoolConfigurationError",
    "PoolClosedError",
    "PoolExhaustedError",
]
