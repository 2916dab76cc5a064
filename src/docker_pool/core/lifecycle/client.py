"""
Lifecycle Client Interface

Abstract base class for the lifecycle verbs the pool runs against a
single named container/image pair.
"""

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Union

from ..readiness import HostPort, ReadinessProber


def _version_key(tag: str) -> List[int]:
    """Numeric sort key for dotted tags ("1.10" after "1.9")"""
    key = []
    for part in tag.split("."):
        match = re.match(r"\d+", part)
        key.append(int(match.group()) if match else 0)
    return key


class LifecycleClient(ABC):
    """
    Abstract base class for lifecycle clients.

    Verbs are synchronous and blocking; the pool runs them in worker
    threads. Verbs whose failure is expected on repeated calls (stop of a
    stopped container, remove of an absent one) return False instead of
    raising.

    Example:
        class MyClient(LifecycleClient):
            def start(self, name, image):
                # Implementation
                ...
    """

    def __init__(self, prober: Optional[ReadinessProber] = None):
        self.prober = prober or ReadinessProber()

    @abstractmethod
    def start(self, name: str, image: str) -> bool:
        """
        Run a new detached container with all exposed ports published.

        Fails if a container with that name already exists.
        """

    @abstractmethod
    def start_existing(self, name: str) -> bool:
        """Start an existing, stopped container"""

    @abstractmethod
    def stop(self, name: str) -> bool:
        """Stop a container; False if absent or not running"""

    @abstractmethod
    def remove(self, name: str) -> bool:
        """Force-remove a container and its anonymous volumes; False if absent"""

    @abstractmethod
    def remove_image(self, image: str) -> bool:
        """Remove an image; False if absent or still referenced"""

    @abstractmethod
    def port_mapping(self, name: str, port: Union[int, str]) -> str:
        """
        Host and port a container port is published on.

        Args:
            name: Container name
            port: Exposed container port ("80" or "80/udp")

        Returns:
            "host:port"

        Raises:
            LifecycleError: If the container is not running or the port
                is not published
        """

    @abstractmethod
    def images_and_tags(self) -> List[Tuple[str, str]]:
        """(repository, tag) pairs of all local images"""

    @abstractmethod
    def version(self) -> str:
        """Container engine version"""

    @abstractmethod
    def build(self, build_path: str, image: str) -> bool:
        """Build image from the Dockerfile and context at build_path"""

    @abstractmethod
    def volume(self, volume: str, name: str) -> Optional[str]:
        """Host path backing mount point volume of a container"""

    def build_url(self, name: str, port: Union[int, str]) -> str:
        """HTTP URL for a container's published port"""
        return f"http://{self.port_mapping(name, port)}"

    def tags(self, image: str) -> List[str]:
        """
        Tags of an image's repository.

        Args:
            image: Image name; a tag suffix is ignored

        Returns:
            Tags sorted by their numeric version components
        """
        repository = image.rsplit(":", 1)[0] if ":" in image.rsplit("/", 1)[-1] else image

        tags = sorted(tag for repo, tag in self.images_and_tags() if repo == repository)
        return sorted(tags, key=_version_key)

    async def is_ready(self, host_port: HostPort, path: Optional[str] = None) -> bool:
        """
        Wait for a published port (and optional HTTP path) to answer.

        Returns:
            True if ready, False once the prober's attempts are used up
        """
        return await self.prober.is_ready(host_port, path)
