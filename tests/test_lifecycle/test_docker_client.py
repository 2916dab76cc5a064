"""
Tests for DockerLifecycleClient.
"""

import docker.errors
import pytest
from unittest.mock import AsyncMock, MagicMock

from docker_pool.core.exceptions import LifecycleError
from docker_pool.core.lifecycle import DockerLifecycleClient


class TestDockerLifecycleClient:
    """Test DockerLifecycleClient with a mocked Docker client."""

    @pytest.fixture
    def client(self, mock_docker_client):
        return DockerLifecycleClient(docker_client=mock_docker_client)

    def test_start(self, client, mock_docker_client):
        """Test running a detached container with published ports."""
        assert client.start("c", "img") is True

        mock_docker_client.containers.run.assert_called_once_with(
            "img",
            name="c",
            detach=True,
            publish_all_ports=True,
        )

    def test_start_conflict(self, client, mock_docker_client):
        """Test starting under a name that is taken."""
        mock_docker_client.containers.run.side_effect = docker.errors.APIError("Conflict")

        assert client.start("c", "img") is False

    def test_start_missing_image(self, client, mock_docker_client):
        mock_docker_client.containers.run.side_effect = docker.errors.ImageNotFound("img")

        assert client.start("c", "img") is False

    def test_start_existing(self, client, mock_container):
        assert client.start_existing("c") is True
        mock_container.start.assert_called_once_with()

    def test_start_existing_missing(self, client, mock_docker_client):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")

        assert client.start_existing("c") is False

    def test_stop(self, client, mock_docker_client, mock_container):
        assert client.stop("c") is True

        mock_docker_client.containers.get.assert_called_with("c")
        mock_container.stop.assert_called_once_with()

    def test_stop_missing(self, client, mock_docker_client):
        """Stopping an absent container does not raise."""
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")

        assert client.stop("c") is False

    def test_remove(self, client, mock_container):
        """Test removing a container with its volumes."""
        assert client.remove("c") is True

        mock_container.remove.assert_called_once_with(v=True, force=True)

    def test_remove_missing(self, client, mock_docker_client):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")

        assert client.remove("c") is False

    def test_remove_image(self, client, mock_docker_client):
        assert client.remove_image("img") is True
        mock_docker_client.images.remove.assert_called_once_with("img")

    def test_remove_image_in_use(self, client, mock_docker_client):
        mock_docker_client.images.remove.side_effect = docker.errors.APIError("image is being used")

        assert client.remove_image("img") is False

    def test_port_mapping(self, client, mock_container):
        """Test resolving a published port."""
        assert client.port_mapping("c", 80) == "0.0.0.0:32768"
        mock_container.reload.assert_called_once_with()

    def test_port_mapping_with_protocol(self, client, mock_container):
        mock_container.ports = {"53/udp": [{"HostIp": "127.0.0.1", "HostPort": "5353"}]}

        assert client.port_mapping("c", "53/udp") == "127.0.0.1:5353"

    def test_port_mapping_unpublished(self, client):
        """Test port that is not exposed."""
        with pytest.raises(LifecycleError) as exc_info:
            client.port_mapping("c", 443)

        assert exc_info.value.container == "c"

    def test_port_mapping_missing_container(self, client, mock_docker_client):
        mock_docker_client.containers.get.side_effect = docker.errors.NotFound("No such container")

        with pytest.raises(LifecycleError):
            client.port_mapping("c", 80)

    def test_build_url(self, client):
        assert client.build_url("c", 80) == "http://0.0.0.0:32768"

    def test_images_and_tags(self, client, mock_docker_client):
        mock_docker_client.images.list.return_value = [
            MagicMock(tags=["foo/bar:baz"]),
            MagicMock(tags=["localhost:5000/quix:2.0"]),
            MagicMock(tags=[]),
        ]

        assert client.images_and_tags() == [
            ("foo/bar", "baz"),
            ("localhost:5000/quix", "2.0"),
        ]

    def test_tags(self, client, mock_docker_client):
        """Test tags are sorted by version, not lexically."""
        mock_docker_client.images.list.return_value = [
            MagicMock(tags=["foo/bar:baz"]),
            MagicMock(tags=["quix:1.10"]),
            MagicMock(tags=["quix:1.1", "quix:1.0"]),
            MagicMock(tags=["quix:1.9"]),
        ]

        assert client.tags("quix") == ["1.0", "1.1", "1.9", "1.10"]
        assert client.tags("quix:latest") == ["1.0", "1.1", "1.9", "1.10"]
        assert client.tags("missing") == []

    def test_version(self, client):
        assert client.version() == "24.0.7"

    def test_version_unavailable(self, client, mock_docker_client):
        mock_docker_client.version.side_effect = docker.errors.DockerException("daemon down")

        with pytest.raises(LifecycleError):
            client.version()

    def test_build(self, client, mock_docker_client):
        assert client.build("/tmp/context", "img:1.0") is True

        mock_docker_client.images.build.assert_called_once_with(path="/tmp/context", tag="img:1.0")

    def test_build_failure(self, client, mock_docker_client):
        mock_docker_client.images.build.side_effect = docker.errors.BuildError("failed", [])

        assert client.build("/tmp/context", "img") is False

    def test_volume(self, client):
        assert client.volume("/data", "c") == "/var/lib/docker/volumes/abc/_data"
        assert client.volume("/other", "c") is None

    @pytest.mark.asyncio
    async def test_is_ready_delegates_to_prober(self, mock_docker_client):
        """Test readiness goes through the prober."""
        prober = MagicMock()
        prober.is_ready = AsyncMock(return_value=True)
        client = DockerLifecycleClient(docker_client=mock_docker_client, prober=prober)

        assert await client.is_ready("0.0.0.0:32768", "/health") is True
        prober.is_ready.assert_awaited_once_with("0.0.0.0:32768", "/health")
