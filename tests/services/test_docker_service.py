"""Tests for DockerService."""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import docker.errors
import pytest

from node_isp.services.docker_service import DockerService, RuntimeContainer
from node_isp.services.exceptions import (
    ContainerNotFoundError,
    DockerServiceError,
    ImageNotFoundError,
    NetworkError,
)


@pytest.fixture
def mock_client():
    with patch('docker.from_env') as mock_from_env:
        client = MagicMock()
        mock_from_env.return_value = client
        yield client


@pytest.fixture
def service(mock_client):
    return DockerService()


class TestDockerServiceInit:
    """Test cases for connecting to the daemon."""

    @patch('docker.from_env')
    def test_init_success(self, mock_from_env):
        """Test successful initialization."""
        mock_client = MagicMock()
        mock_from_env.return_value = mock_client

        service = DockerService()

        assert service.client == mock_client
        mock_client.ping.assert_called_once()

    @patch('docker.from_env')
    def test_init_daemon_not_running(self, mock_from_env):
        """Test initialization when the daemon is not reachable."""
        mock_from_env.side_effect = docker.errors.DockerException("Error while fetching server API version: Connection refused")

        with pytest.raises(DockerServiceError, match="Docker daemon is not running"):
            DockerService()

    @patch('docker.from_env')
    def test_init_other_error(self, mock_from_env):
        """Test initialization with another Docker error."""
        mock_from_env.side_effect = docker.errors.DockerException("permission denied")

        with pytest.raises(DockerServiceError, match="Failed to connect to Docker"):
            DockerService()


class TestRuntimeContainer:
    """Test cases for RuntimeContainer."""

    def test_from_api(self):
        """Test conversion of a container list entry."""
        container = RuntimeContainer.from_api({
            "Id": "abc123",
            "Names": ["/nodeisp_redis_0123abcd"],
            "State": "running",
            "Created": 1714521600,
            "Labels": {"app": "nodeisp", "service": "redis"},
        })

        assert container.name == "nodeisp_redis_0123abcd"
        assert container.is_running
        assert container.created == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert container.labels["service"] == "redis"

    def test_from_api_minimal(self):
        """Test conversion of an entry without names, labels or timestamp."""
        container = RuntimeContainer.from_api({"Id": "abc123", "State": "exited"})

        assert container.name == ""
        assert container.created is None
        assert container.labels == {}
        assert not container.is_running


class TestDockerServiceOperations:
    """Test cases for container and network operations."""

    def test_list_containers_filters_labels(self, service, mock_client):
        """Test that labels become daemon-side filters."""
        mock_client.api.containers.return_value = [{"Id": "abc", "Names": ["/x"], "State": "exited"}]

        result = service.list_containers({"app": "nodeisp", "service": "redis"})

        mock_client.api.containers.assert_called_once_with(
            all=True, filters={"label": ["app=nodeisp", "service=redis"]}
        )
        assert [c.id for c in result] == ["abc"]

    def test_list_containers_api_error(self, service, mock_client):
        mock_client.api.containers.side_effect = docker.errors.APIError("boom")

        with pytest.raises(DockerServiceError, match="Failed to list containers"):
            service.list_containers({"app": "nodeisp"})

    def test_list_networks_error(self, service, mock_client):
        mock_client.api.networks.side_effect = docker.errors.APIError("boom")

        with pytest.raises(NetworkError):
            service.list_networks({"app": "nodeisp"})

    def test_create_network(self, service, mock_client):
        """Test creating a labelled bridge network."""
        mock_client.api.create_network.return_value = {"Id": "net123"}

        assert service.create_network("nodeisp", {"app": "nodeisp"}) == "net123"
        mock_client.api.create_network.assert_called_once_with(
            "nodeisp", driver="bridge", labels={"app": "nodeisp"}
        )

    def test_pull_image(self, service, mock_client):
        """Test pulling with a platform pin."""
        mock_client.api.pull.return_value = iter([{"status": "Pulling fs layer"}, {"status": "Done"}])

        service.pull_image("ghcr.io/node-isp/node-isp:v0.11.8", platform="linux/amd64")

        mock_client.api.pull.assert_called_once_with(
            "ghcr.io/node-isp/node-isp:v0.11.8", platform="linux/amd64", stream=True, decode=True
        )

    def test_pull_image_error_event(self, service, mock_client):
        """Test that an error reported in the progress stream fails the pull."""
        mock_client.api.pull.return_value = iter([{"error": "manifest unknown"}])

        with pytest.raises(DockerServiceError, match="manifest unknown"):
            service.pull_image("redis:nope")

    def test_pull_image_not_found(self, service, mock_client):
        mock_client.api.pull.side_effect = docker.errors.NotFound("not found")

        with pytest.raises(ImageNotFoundError):
            service.pull_image("redis:nope")

    def test_create_container(self, service, mock_client):
        """Test translating a create request into the low-level API."""
        mock_client.api.create_container.return_value = {"Id": "ctr123"}

        container_id = service.create_container(
            image="nginx:1",
            name="nodeisp_web_12345678",
            environment=["A=1"],
            exposed_ports=["80/tcp"],
            labels={"app": "nodeisp"},
            network="net123",
            mounts=[{"type": "bind", "source": "/srv", "target": "/www", "read_only": True}],
            port_bindings={"443/tcp": [("127.0.0.1", "8443")]},
            platform="linux/amd64",
        )

        assert container_id == "ctr123"
        host_kwargs = mock_client.api.create_host_config.call_args.kwargs
        assert host_kwargs["network_mode"] == "net123"
        assert host_kwargs["port_bindings"] == {"443/tcp": [("127.0.0.1", "8443")]}
        assert host_kwargs["restart_policy"] == {"Name": "unless-stopped"}
        mount = host_kwargs["mounts"][0]
        assert mount["Source"] == "/srv"
        assert mount["Target"] == "/www"
        assert mount["ReadOnly"] is True

        kwargs = mock_client.api.create_container.call_args.kwargs
        assert kwargs["ports"] == [("443", "tcp"), ("80", "tcp")]
        assert kwargs["platform"] == "linux/amd64"
        assert kwargs["entrypoint"] is None
        assert kwargs["tty"] is True
        assert kwargs["host_config"] == mock_client.api.create_host_config.return_value

    def test_create_container_without_platform(self, service, mock_client):
        """Test that no platform is sent unless one is pinned."""
        mock_client.api.create_container.return_value = {"Id": "ctr123"}

        service.create_container(image="redis:7", name="nodeisp_redis_12345678")

        assert "platform" not in mock_client.api.create_container.call_args.kwargs

    def test_create_container_image_not_found(self, service, mock_client):
        mock_client.api.create_container.side_effect = docker.errors.ImageNotFound("missing")

        with pytest.raises(ImageNotFoundError):
            service.create_container(image="redis:nope", name="x")

    def test_start_container_not_found(self, service, mock_client):
        mock_client.api.start.side_effect = docker.errors.NotFound("gone")

        with pytest.raises(ContainerNotFoundError):
            service.start_container("abc")

    def test_remove_container(self, service, mock_client):
        service.remove_container("abc", force=True)

        mock_client.api.remove_container.assert_called_once_with("abc", force=True)

    def test_stop_container_api_error(self, service, mock_client):
        mock_client.api.stop.side_effect = docker.errors.APIError("conflict")

        with pytest.raises(DockerServiceError, match="Failed to stop container"):
            service.stop_container("abc")

    def test_attach_container(self, service, mock_client):
        """Test attaching with past logs included."""
        service.attach_container("abc")

        mock_client.api.attach.assert_called_once_with(
            "abc", stdout=True, stderr=True, stream=True, logs=True
        )

    def test_wait_container(self, service, mock_client):
        mock_client.api.wait.return_value = {"StatusCode": 1}

        assert service.wait_container("abc") == {"StatusCode": 1}
        mock_client.api.wait.assert_called_once_with("abc", timeout=None, condition="not-running")

    def test_exec_command(self, service, mock_client):
        """Test creating and starting an exec session."""
        mock_client.api.exec_create.return_value = {"Id": "exec1"}
        mock_client.api.exec_start.return_value = iter([b"ok"])

        stream = service.exec_command("nodeisp_app_12345678", ["php", "artisan", "about"])

        assert list(stream) == [b"ok"]
        mock_client.api.exec_create.assert_called_once_with(
            "nodeisp_app_12345678", ["php", "artisan", "about"],
            stdout=True, stderr=True, stdin=True, tty=True,
        )
        mock_client.api.exec_start.assert_called_once_with("exec1", tty=True, stream=True)

    def test_exec_command_not_found(self, service, mock_client):
        mock_client.api.exec_create.side_effect = docker.errors.NotFound("no such container")

        with pytest.raises(ContainerNotFoundError):
            service.exec_command("missing", ["true"])
