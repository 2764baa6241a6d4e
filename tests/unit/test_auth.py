"""Unit tests for registry authentication."""

import base64
import json
from unittest.mock import MagicMock

import pytest

from ephemeral_containers.models.errors import ConfigurationError, CredentialHelperError
from ephemeral_containers.services.auth import (
    DOCKER_HUB_KEY,
    DockerAuthConfig,
    RegistryCredentials,
    get_registry_from_image,
    normalize_registry,
)
from ephemeral_containers.utils.process import CommandResult, CommandRunner


def encode(user: str, password: str) -> str:
    return base64.b64encode(f"{user}:{password}".encode()).decode()


@pytest.fixture
def runner():
    """Command runner with every credential helper installed."""
    mock_runner = MagicMock(spec=CommandRunner)
    mock_runner.which.side_effect = lambda name: f"/usr/local/bin/{name}"
    return mock_runner


@pytest.fixture
def auth_config(make_settings, runner):
    """Factory building DockerAuthConfig from an inline JSON document."""

    def factory(document, **settings_overrides):
        raw = document if isinstance(document, str) else json.dumps(document)
        return DockerAuthConfig(make_settings(docker_auth_config=raw, **settings_overrides), runner=runner)

    return factory


class TestInlineConfig:
    """Tests for DOCKER_AUTH_CONFIG documents."""

    def test_base64_auth(self, auth_config):
        config = auth_config({"auths": {"registry.example.com": {"auth": encode("user", "pass")}}})

        assert config.get_auth_for_registry("registry.example.com") == RegistryCredentials("user", "pass")

    def test_username_password(self, auth_config):
        config = auth_config({"auths": {"registry.example.com": {"username": "myuser", "password": "mypass"}}})

        creds = config.get_auth_for_registry("registry.example.com")

        assert creds.username == "myuser"
        assert creds.password == "mypass"
        assert creds.to_auth_config() == {"username": "myuser", "password": "mypass"}

    def test_password_may_contain_colons(self, auth_config):
        config = auth_config({"auths": {"r.io": {"auth": encode("user", "pa:ss:word")}}})

        assert config.get_auth_for_registry("r.io").password == "pa:ss:word"

    def test_unknown_registry(self, auth_config):
        config = auth_config({"auths": {"registry.example.com": {"auth": encode("user", "pass")}}})

        assert config.get_auth_for_registry("other.example.com") is None

    def test_empty_document(self, auth_config):
        assert auth_config({}).get_auth_for_registry("docker.io") is None

    def test_invalid_json(self, auth_config):
        """Test that a malformed inline document is a configuration error."""
        with pytest.raises(ConfigurationError, match="Invalid JSON in DOCKER_AUTH_CONFIG"):
            auth_config("{not json")

    @pytest.mark.parametrize("auth", ["invalid-base64!@#", base64.b64encode(b"no-separator").decode()])
    def test_invalid_auth_format(self, auth_config, auth):
        config = auth_config({"auths": {"registry.example.com": {"auth": auth}}})

        with pytest.raises(ConfigurationError, match="Invalid auth format"):
            config.get_auth_for_registry("registry.example.com")

    def test_credentials_for_image(self, auth_config):
        config = auth_config({"auths": {"ghcr.io": {"auth": encode("gh", "token")}}})

        assert config.get_auth_for_image("ghcr.io/owner/repo:tag") == RegistryCredentials("gh", "token")
        assert config.get_auth_for_image("ubuntu:22.04") is None


class TestRegistryNormalization:
    """Tests for registry key normalization."""

    @pytest.mark.parametrize(
        "registry",
        ["docker.io", "index.docker.io", "registry-1.docker.io", "https://index.docker.io/v1/", "http://docker.io/"],
    )
    def test_docker_hub_aliases(self, registry):
        assert normalize_registry(registry) == DOCKER_HUB_KEY

    @pytest.mark.parametrize(
        "registry,expected",
        [
            ("https://ghcr.io/", "ghcr.io"),
            ("http://localhost:5000", "localhost:5000"),
            ("quay.io", "quay.io"),
        ],
    )
    def test_strips_scheme_and_slash(self, registry, expected):
        assert normalize_registry(registry) == expected

    @pytest.mark.parametrize("stored_key", ["docker.io", "index.docker.io", "https://index.docker.io/v1/"])
    @pytest.mark.parametrize("lookup", ["docker.io", "index.docker.io", "registry-1.docker.io"])
    def test_docker_hub_lookup_matches_any_alias(self, auth_config, stored_key, lookup):
        """Test that all Docker Hub aliases resolve to one stored entry."""
        config = auth_config({"auths": {stored_key: {"auth": encode("user", "pass")}}})

        assert config.get_auth_for_registry(lookup) == RegistryCredentials("user", "pass")


class TestRegistryFromImage:
    """Tests for extracting the registry from an image reference."""

    @pytest.mark.parametrize(
        "image,expected",
        [
            ("ubuntu", "docker.io"),
            ("library/ubuntu", "docker.io"),
            ("ubuntu:20.04", "docker.io"),
            ("ghcr.io/owner/repo", "ghcr.io"),
            ("ghcr.io/owner/repo:tag", "ghcr.io"),
            ("myregistry.com/image", "myregistry.com"),
            ("localhost:5000/image", "localhost:5000"),
            ("localhost/image", "localhost"),
        ],
    )
    def test_registry_from_image(self, image, expected):
        assert get_registry_from_image(image) == expected
        assert DockerAuthConfig.get_registry_from_image(image) == expected


class TestCredentialHelpers:
    """Tests for credHelpers and credsStore lookups."""

    def test_cred_helper_used_for_registry(self, auth_config, runner):
        runner.run.return_value = CommandResult(0, json.dumps({"Username": "aws", "Secret": "ecr-token"}), "")
        config = auth_config({"credHelpers": {"123.dkr.ecr.us-east-1.amazonaws.com": "ecr-login"}})

        creds = config.get_auth_for_registry("123.dkr.ecr.us-east-1.amazonaws.com")

        assert creds == RegistryCredentials("aws", "ecr-token")
        runner.which.assert_called_once_with("docker-credential-ecr-login")
        runner.run.assert_called_once_with(
            ["/usr/local/bin/docker-credential-ecr-login", "get"],
            input="123.dkr.ecr.us-east-1.amazonaws.com",
        )

    def test_cred_helper_takes_priority_over_store(self, auth_config, runner):
        runner.run.return_value = CommandResult(0, json.dumps({"Username": "u", "Secret": "s"}), "")
        config = auth_config({"credsStore": "desktop", "credHelpers": {"gcr.io": "gcloud"}})

        config.get_auth_for_registry("gcr.io")

        runner.which.assert_called_once_with("docker-credential-gcloud")

    def test_explicit_auth_takes_priority_over_helpers(self, auth_config, runner):
        config = auth_config({"auths": {"gcr.io": {"auth": encode("a", "b")}}, "credsStore": "desktop"})

        assert config.get_auth_for_registry("gcr.io") == RegistryCredentials("a", "b")
        runner.run.assert_not_called()

    def test_creds_store_fallback(self, auth_config, runner):
        runner.run.return_value = CommandResult(0, json.dumps({"Username": "hub", "Secret": "pat"}), "")
        config = auth_config({"credsStore": "desktop"})

        assert config.get_auth_for_registry("docker.io") == RegistryCredentials("hub", "pat")
        runner.run.assert_called_once_with(["/usr/local/bin/docker-credential-desktop", "get"], input=DOCKER_HUB_KEY)

    def test_credentials_not_found_is_none(self, auth_config, runner):
        """Test that a helper with no entry yields no credentials."""
        runner.run.return_value = CommandResult(1, "", "credentials not found in native keychain")
        config = auth_config({"credsStore": "desktop"})

        assert config.get_auth_for_registry("docker.io") is None

    def test_helper_not_installed_is_none(self, auth_config, runner):
        runner.which.side_effect = lambda name: None
        config = auth_config({"credsStore": "desktop"})

        assert config.get_auth_for_registry("docker.io") is None
        runner.run.assert_not_called()

    def test_helper_failure_raises(self, auth_config, runner):
        runner.run.return_value = CommandResult(1, "", "error getting credentials: keychain locked")
        config = auth_config({"credsStore": "desktop"})

        with pytest.raises(CredentialHelperError) as exc_info:
            config.get_auth_for_registry("docker.io")

        assert exc_info.value.registry == DOCKER_HUB_KEY
        assert "docker-credential-desktop" in str(exc_info.value)

    def test_helper_invalid_json_raises(self, auth_config, runner):
        runner.run.return_value = CommandResult(0, "not json", "")
        config = auth_config({"credsStore": "desktop"})

        with pytest.raises(CredentialHelperError):
            config.get_auth_for_registry("docker.io")

    def test_helper_without_secret_is_none(self, auth_config, runner):
        runner.run.return_value = CommandResult(0, json.dumps({"Username": "u"}), "")
        config = auth_config({"credsStore": "desktop"})

        assert config.get_auth_for_registry("docker.io") is None


class TestConfigFiles:
    """Tests for auth file discovery."""

    def test_loads_home_config(self, make_settings, runner, tmp_path):
        docker_dir = tmp_path / ".docker"
        docker_dir.mkdir()
        (docker_dir / "config.json").write_text(
            json.dumps({"auths": {"registry.example.com": {"auth": encode("fileuser", "filepass")}}})
        )

        config = DockerAuthConfig(make_settings(home=str(tmp_path)), runner=runner)

        assert config.get_auth_for_registry("registry.example.com") == RegistryCredentials("fileuser", "filepass")

    def test_inline_config_wins_over_file(self, make_settings, runner, tmp_path):
        docker_dir = tmp_path / ".docker"
        docker_dir.mkdir()
        (docker_dir / "config.json").write_text(json.dumps({"auths": {"r.io": {"auth": encode("file", "x")}}}))
        inline = json.dumps({"auths": {"r.io": {"auth": encode("env", "y")}}})

        config = DockerAuthConfig(make_settings(home=str(tmp_path), docker_auth_config=inline), runner=runner)

        assert config.get_auth_for_registry("r.io").username == "env"

    def test_invalid_file_json(self, make_settings, runner, tmp_path):
        docker_dir = tmp_path / ".docker"
        docker_dir.mkdir()
        (docker_dir / "config.json").write_text("{broken")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            DockerAuthConfig(make_settings(home=str(tmp_path)), runner=runner)

    def test_search_order(self, make_settings, runner):
        config = DockerAuthConfig(make_settings(home="/home/tester"), runner=runner)

        assert config.config_paths() == ["/home/tester/.docker/config.json", "/etc/docker/config.json"]
