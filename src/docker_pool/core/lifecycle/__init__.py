"""
Container Lifecycle

Lifecycle client interface, its Docker implementation and the compound
operations built on top of it.
"""

from .client import LifecycleClient
from .docker_client import DockerLifecycleClient
from .state_machine import ContainerLifecycle

__all__ = [
    "LifecycleClient",
    "DockerLifecycleClient",
    "ContainerLifecycle",
]
