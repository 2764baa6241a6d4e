"""Pytest configuration and shared fixtures."""

from unittest.mock import MagicMock

import docker
import pytest

from ephemeral_containers.config import Settings
from ephemeral_containers.services.container.started import StartedContainer


def build_settings(**overrides) -> Settings:
    """Build settings that ignore the developer's environment and .env file."""
    values = {
        "docker_host": "tcp://127.0.0.1:2375",
        "testcontainers_host_override": None,
        "allow_host_override": True,
        "docker_auth_config": None,
        "home": None,
        "wait_timeout": 1.0,
        "wait_poll_interval": 0.01,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_settings():
    """Factory for isolated settings with field overrides."""
    return build_settings


@pytest.fixture
def settings():
    """Settings isolated from the host environment."""
    return build_settings()


@pytest.fixture
def inspect_data():
    """Inspect document of a running container with one published port."""
    return {
        "Id": "abc123def4567890",
        "Name": "/test-container",
        "State": {"Running": True, "Status": "running", "Health": {"Status": "healthy"}},
        "Config": {"Labels": {"com.example.role": "db"}},
        "NetworkSettings": {
            "Ports": {
                "80/tcp": [
                    {"HostIp": "0.0.0.0", "HostPort": "49153"},
                    {"HostIp": "::", "HostPort": "49153"},
                ],
                "53/udp": None,
            },
            "Networks": {
                "bridge": {"NetworkID": "net-bridge-id", "IPAddress": "172.17.0.2"},
            },
        },
    }


@pytest.fixture
def mock_docker(inspect_data):
    """Mock low-level Docker API client for testing."""
    mock_client = MagicMock(spec=docker.APIClient)

    mock_client.create_container.return_value = {"Id": "abc123def4567890", "Warnings": []}
    mock_client.start.return_value = None
    mock_client.stop.return_value = None
    mock_client.remove_container.return_value = None
    mock_client.restart.return_value = None
    mock_client.inspect_container.return_value = inspect_data
    mock_client.exec_create.return_value = {"Id": "exec-1"}
    mock_client.exec_start.return_value = b"test output\n"
    mock_client.exec_inspect.return_value = {"ExitCode": 0}
    mock_client.logs.return_value = b"server ready\n"
    mock_client.put_archive.return_value = True
    mock_client.pull.return_value = ""
    mock_client.create_host_config.side_effect = lambda **kwargs: {"host_config": kwargs}
    mock_client.create_endpoint_config.return_value = {}
    mock_client.create_networking_config.side_effect = lambda endpoints: {"EndpointsConfig": endpoints}

    return mock_client


@pytest.fixture
def host_resolver():
    """Resolver stub that always answers localhost."""
    resolver = MagicMock()
    resolver.resolve_host.return_value = "localhost"
    return resolver


@pytest.fixture
def started_container(mock_docker, settings, host_resolver):
    """Handle to a mocked running container."""
    return StartedContainer("abc123def4567890", mock_docker, settings=settings, host_resolver=host_resolver)
