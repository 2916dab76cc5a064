"""
Docker Pool Exceptions

Custom exceptions for lifecycle and pool operations.
"""

from typing import Optional


class DockerPoolError(Exception):
    """Base exception for docker pool errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class LifecycleError(DockerPoolError):
    """Raised when a lifecycle verb cannot produce a result"""

    def __init__(self, message: str, container: Optional[str] = None):
        self.container = container
        super().__init__(message)


class PoolError(DockerPoolError):
    """Raised when container pool operations fail"""

    def __init__(self, message: str, basename: Optional[str] = None):
        self.basename = basename
        super().__init__(message)


class PoolConfigurationError(PoolError):
    """Raised when the pool is missing configuration an operation needs"""


class PoolClosedError(PoolError):
    """Raised when acquiring from a pool that has been released"""

    def __init__(self, basename: Optional[str] = None):
        super().__init__(f"Container pool has been released: {basename}", basename=basename)


class PoolExhaustedError(PoolError):
    """Raised when no slot is pending and no name was given to reclaim"""

    def __init__(self, basename: Optional[str] = None):
        super().__init__(
            f"No pending container in pool {basename}; pass a name to reclaim",
            basename=basename,
        )
