import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock
from pathlib import Path

import yaml

from node_isp.services.docker_service import DockerService, RuntimeContainer


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def mock_docker_service():
    """Provides a mocked Docker service with an existing network and no containers."""
    service = MagicMock(spec=DockerService)
    service.list_networks.return_value = [{"Id": "net123"}]
    service.list_containers.return_value = []
    service.create_container.return_value = "new-container-id"
    service.attach_container.return_value = iter([])
    service.wait_container.return_value = {"StatusCode": 0}
    service.exec_command.return_value = iter([])
    return service


@pytest.fixture
def make_container():
    """Factory for runtime containers as returned by the gateway."""
    def _make(container_id, name="", state="running", labels=None):
        return RuntimeContainer(
            id=container_id,
            name=name or f"ctr-{container_id}",
            state=state,
            labels=labels or {},
        )
    return _make


@pytest.fixture
def config_data(tmp_path):
    """Minimal valid configuration pointing storage at a temporary directory."""
    return {
        "http": {"domains": ["isp.example.com"], "tls": {"email": "ops@example.com"}},
        "licence": {"id": "lic-id", "key": "lic-key"},
        "storage": {"data": str(tmp_path / "data"), "logs": str(tmp_path / "logs")},
        "app": {"name": "Example ISP", "key": "base64:appkey"},
        "database": {"name": "nodeisp", "password": "dbpass"},
        "redis": {"password": "redispass"},
    }


@pytest.fixture
def config_file(tmp_path, config_data):
    """Writes the configuration to a YAML file."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config_data))
    return path
