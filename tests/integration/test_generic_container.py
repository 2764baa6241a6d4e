"""
Container lifecycle tests against a real Docker daemon.

Skipped when no daemon answers a ping. Images used are small public ones
(alpine, nginx) and are pulled on first use.
"""

import pytest

from ephemeral_containers import (
    ContentEntry,
    GenericContainer,
    Settings,
    WaitForExec,
    WaitForHostPort,
    WaitForHttp,
    WaitForLog,
)
from ephemeral_containers.models.errors import CreationError, PortNotFoundError
from ephemeral_containers.services.container import DockerClientFactory

pytestmark = pytest.mark.integration

ALPINE = "alpine:3.19"
NGINX = "nginx:1.25-alpine"


@pytest.fixture(scope="module")
def docker_settings():
    """Settings from the real environment."""
    return Settings()


@pytest.fixture(scope="module")
def docker_client(docker_settings):
    """Shared API client; skips the module when Docker is unavailable."""
    factory = DockerClientFactory(docker_settings)
    if not factory.is_available():
        pytest.skip(f"Docker not available: {factory.get_initialization_error()}")
    yield factory.get_client()
    factory.close()


@pytest.fixture
def container(docker_client, docker_settings):
    """Factory for containers sharing the module client."""

    def factory(image=ALPINE):
        return GenericContainer(image, settings=docker_settings, client=docker_client)

    return factory


class TestLifecycle:
    """Start, exec and stop."""

    def test_exec_in_running_container(self, container):
        with container().with_command(["tail", "-f", "/dev/null"]).start() as started:
            assert started.exec(["echo", "hello"]) == "hello"
            assert started.exec_run(["sh", "-c", "exit 3"]).exit_code == 3

    def test_environment_and_labels(self, container):
        started = (
            container()
            .with_command("tail -f /dev/null")
            .with_env({"GREETING": "hi"})
            .with_labels({"org.example.test": "yes"})
            .start()
        )
        try:
            assert started.exec(["printenv", "GREETING"]) == "hi"
            assert started.get_labels()["org.example.test"] == "yes"
        finally:
            stopped = started.stop()

        assert stopped.get_id() == started.get_id()

    def test_restart_keeps_id(self, container):
        with container().with_command(["tail", "-f", "/dev/null"]).start() as started:
            container_id = started.get_id()

            assert started.restart().get_id() == container_id
            assert started.inspect(refresh=True)["State"]["Running"] is True

    def test_copy_content_before_wait(self, container):
        started = (
            container()
            .with_command(["tail", "-f", "/dev/null"])
            .with_copy_content_to_container([ContentEntry("key=value\n", "/etc/app/app.conf", 0o600)])
            .with_wait(WaitForExec(["cat", "/etc/app/app.conf"], expected_output="key=value"))
            .start()
        )
        with started:
            assert started.exec(["stat", "-c", "%a", "/etc/app/app.conf"]) == "600"

    def test_wait_for_log(self, container):
        started = (
            container()
            .with_command(["sh", "-c", "echo booted; tail -f /dev/null"])
            .with_wait(WaitForLog("booted").with_timeout(30))
            .start()
        )
        with started:
            assert "booted" in started.logs()

    def test_unknown_image_fails_creation(self, container):
        with pytest.raises(CreationError):
            container("ephemeral-containers/does-not-exist:never").start()


class TestPorts:
    """Published ports and readiness probes."""

    def test_host_port_wait(self, container):
        started = container(NGINX).with_exposed_ports(80).with_wait(WaitForHostPort().with_timeout(60)).start()
        with started:
            port = started.get_mapped_port(80)
            assert 1024 <= port <= 65535
            assert started.get_first_mapped_port() == port

            with pytest.raises(PortNotFoundError):
                started.get_mapped_port(443)

    def test_http_wait(self, container):
        started = container(NGINX).with_exposed_ports(80).with_wait(WaitForHttp(80).with_timeout(60)).start()
        with started:
            assert started.get_host()
            assert started.get_network_names()
