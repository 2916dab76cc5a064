"""
Pytest configuration and fixtures for docker pool tests
"""

import os
import sys
import threading
from typing import Dict, List, Optional, Set, Tuple
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from docker_pool.core.exceptions import LifecycleError  # noqa: E402
from docker_pool.core.lifecycle import LifecycleClient  # noqa: E402


class FakeLifecycleClient(LifecycleClient):
    """
    In-memory lifecycle client.

    Records every verb in ``calls`` in the order it completed. ``gates``
    maps container names to threading events that ``start`` waits on,
    so tests can hold a provisioning task mid-flight.
    """

    def __init__(self, ready: bool = True, mapping: str = "127.0.0.1:49153"):
        super().__init__()
        self.ready = ready
        self.mapping = mapping

        self.calls: List[Tuple[str, ...]] = []
        self.ready_checks: List[Tuple[str, Optional[str]]] = []
        self.gates: Dict[str, threading.Event] = {}

        self.existing: Set[str] = set()
        self.running: Set[str] = set()
        self._lock = threading.Lock()

    def _record(self, *call: str) -> None:
        with self._lock:
            self.calls.append(call)

    def calls_for(self, name: str) -> List[str]:
        """Verbs issued for one container, in order"""
        return [call[0] for call in self.calls if call[1] == name]

    def start(self, name, image):
        gate = self.gates.get(name)
        if gate is not None:
            gate.wait(timeout=5)

        self._record("start", name, image)
        if name in self.existing:
            return False

        self.existing.add(name)
        self.running.add(name)
        return True

    def start_existing(self, name):
        self._record("start_existing", name)
        if name not in self.existing or name in self.running:
            return False

        self.running.add(name)
        return True

    def stop(self, name):
        self._record("stop", name)
        if name not in self.running:
            return False

        self.running.discard(name)
        return True

    def remove(self, name):
        self._record("remove", name)
        if name not in self.existing:
            return False

        self.existing.discard(name)
        self.running.discard(name)
        return True

    def remove_image(self, image):
        self._record("remove_image", image)
        return False

    def port_mapping(self, name, port):
        self._record("port_mapping", name)
        if name not in self.running:
            raise LifecycleError(f"Container {name} is not running", container=name)
        return self.mapping

    def images_and_tags(self):
        return []

    def version(self):
        return "24.0.7"

    def build(self, build_path, image):
        return True

    def volume(self, volume, name):
        return None

    async def is_ready(self, host_port, path=None):
        self.ready_checks.append((host_port, path))
        return self.ready


@pytest.fixture
def fake_client():
    """In-memory lifecycle client"""
    return FakeLifecycleClient()


@pytest.fixture
def pid():
    """Process id used in slot names"""
    return os.getpid()


@pytest.fixture
def mock_docker_client():
    """Mock Docker client."""
    client = MagicMock()
    client.ping.return_value = True
    client.version.return_value = {"Version": "24.0.7"}

    container = MagicMock()
    container.id = "test_container_123456789"
    container.status = "running"
    container.ports = {"80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "32768"}]}
    container.attrs = {
        "Mounts": [
            {"Destination": "/data", "Source": "/var/lib/docker/volumes/abc/_data"},
        ]
    }
    container.reload.return_value = None

    client.containers.run.return_value = container
    client.containers.get.return_value = container

    return client


@pytest.fixture
def mock_container(mock_docker_client):
    """Mock Docker container."""
    return mock_docker_client.containers.get.return_value
