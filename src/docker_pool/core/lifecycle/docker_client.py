"""
Docker Lifecycle Client

Lifecycle verbs on top of the Docker Engine SDK.
"""
import logging
from typing import List, Optional, Tuple, Union

import docker
import docker.errors
from docker.models.containers import Container

from ..config import get_settings
from ..exceptions import LifecycleError
from ..readiness import ReadinessProber
from .client import LifecycleClient

logger = logging.getLogger(__name__)


class DockerLifecycleClient(LifecycleClient):
    """Runs lifecycle verbs against the local Docker daemon"""

    def __init__(
        self,
        docker_client: Optional[docker.DockerClient] = None,
        prober: Optional[ReadinessProber] = None,
    ):
        """
        Initialize client.

        Args:
            docker_client: Docker client (creates one from the environment if not provided)
            prober: Readiness prober for is_ready

        Raises:
            docker.errors.DockerException: If Docker is not available
        """
        super().__init__(prober)
        self.docker_client = docker_client or docker.from_env(
            timeout=get_settings().docker_timeout
        )

    def start(self, name: str, image: str) -> bool:
        try:
            container: Container = self.docker_client.containers.run(
                image,
                name=name,
                detach=True,
                publish_all_ports=True,
            )
        except docker.errors.DockerException as e:
            logger.warning(f"Failed to start container {name} from {image}: {e}")
            return False

        logger.debug(f"Started container {name} ({container.id[:12]}) from {image}")
        return True

    def start_existing(self, name: str) -> bool:
        try:
            self._get(name).start()
        except docker.errors.DockerException as e:
            logger.debug(f"Could not start existing container {name}: {e}")
            return False

        logger.debug(f"Started existing container {name}")
        return True

    def stop(self, name: str) -> bool:
        try:
            self._get(name).stop()
        except docker.errors.DockerException as e:
            logger.debug(f"Could not stop container {name}: {e}")
            return False

        logger.debug(f"Stopped container {name}")
        return True

    def remove(self, name: str) -> bool:
        try:
            self._get(name).remove(v=True, force=True)
        except docker.errors.DockerException as e:
            logger.debug(f"Could not remove container {name}: {e}")
            return False

        logger.debug(f"Removed container {name}")
        return True

    def remove_image(self, image: str) -> bool:
        try:
            self.docker_client.images.remove(image)
        except docker.errors.DockerException as e:
            logger.debug(f"Could not remove image {image}: {e}")
            return False

        logger.debug(f"Removed image {image}")
        return True

    def port_mapping(self, name: str, port: Union[int, str]) -> str:
        key = str(port) if "/" in str(port) else f"{port}/tcp"

        try:
            container = self._get(name)
            container.reload()
        except docker.errors.DockerException as e:
            raise LifecycleError(f"Container {name} not available: {e}", container=name) from e

        bindings = (container.ports or {}).get(key)
        if not bindings:
            raise LifecycleError(f"Port {key} of container {name} is not published", container=name)

        binding = bindings[0]
        return f"{binding['HostIp'] or '0.0.0.0'}:{binding['HostPort']}"

    def images_and_tags(self) -> List[Tuple[str, str]]:
        try:
            images = self.docker_client.images.list()
        except docker.errors.DockerException as e:
            logger.warning(f"Failed to list images: {e}")
            return []

        pairs = []
        for image in images:
            for repo_tag in image.tags:
                repository, _, tag = repo_tag.rpartition(":")
                pairs.append((repository, tag))
        return pairs

    def version(self) -> str:
        try:
            return self.docker_client.version()["Version"]
        except (docker.errors.DockerException, KeyError) as e:
            raise LifecycleError(f"Could not determine Docker version: {e}") from e

    def build(self, build_path: str, image: str) -> bool:
        logger.info(f"Building image {image} from {build_path}")

        try:
            self.docker_client.images.build(path=str(build_path), tag=image)
        except docker.errors.DockerException as e:
            logger.warning(f"Failed to build image {image}: {e}")
            return False

        return True

    def volume(self, volume: str, name: str) -> Optional[str]:
        try:
            mounts = self._get(name).attrs.get("Mounts") or []
        except docker.errors.DockerException as e:
            logger.debug(f"Could not inspect container {name}: {e}")
            return None

        for mount in mounts:
            if mount.get("Destination") == volume:
                return mount.get("Source")
        return None

    def _get(self, name: str) -> Container:
        return self.docker_client.containers.get(name)
