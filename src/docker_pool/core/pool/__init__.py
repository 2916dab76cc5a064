"""
Container Pool Management

Pre-warmed pool of disposable containers for fast acquisition.
"""

from .manager import ContainerPool, SingleContainerPool, create_pool
from .models import PoolStatus

__all__ = [
    "ContainerPool",
    "SingleContainerPool",
    "create_pool",
    "PoolStatus",
]
