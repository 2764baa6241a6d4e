"""Unit tests for the error hierarchy."""

import pytest

from ephemeral_containers.models.errors import (
    ArchiveEntryError,
    ConfigurationError,
    ContainerException,
    ContainerSpecFrozenError,
    CreationError,
    CredentialHelperError,
    ErrorType,
    NetworkNotFoundError,
    PortAllocationError,
    PortNotFoundError,
    StartError,
    UnsupportedSchemeError,
    UploadError,
    WaitTimeoutError,
)


@pytest.mark.parametrize(
    "error,error_type",
    [
        (ConfigurationError("bad"), ErrorType.CONFIGURATION),
        (UnsupportedSchemeError("ftp"), ErrorType.UNSUPPORTED_SCHEME),
        (CreationError("nginx"), ErrorType.CREATION_FAILED),
        (StartError("abc"), ErrorType.START_FAILED),
        (UploadError("abc"), ErrorType.UPLOAD_FAILED),
        (WaitTimeoutError("abc"), ErrorType.TIMEOUT),
        (PortNotFoundError("80/tcp"), ErrorType.PORT_NOT_FOUND),
        (NetworkNotFoundError("backend"), ErrorType.NETWORK_NOT_FOUND),
        (CredentialHelperError("docker-credential-desktop", "ghcr.io"), ErrorType.CREDENTIAL_HELPER),
        (ArchiveEntryError("bad entry"), ErrorType.VALIDATION),
        (ContainerSpecFrozenError("nginx"), ErrorType.VALIDATION),
        (PortAllocationError(), ErrorType.RESOURCE_EXHAUSTED),
    ],
)
def test_error_types(error, error_type):
    assert isinstance(error, ContainerException)
    assert error.error_type is error_type


class TestMessages:
    """Tests that messages name the offending item."""

    def test_unsupported_scheme(self):
        assert str(UnsupportedSchemeError("invalid")) == "Unsupported Docker host scheme: invalid"

    def test_wait_timeout(self):
        error = WaitTimeoutError("abc123", 2.5)

        assert error.container_id == "abc123"
        assert str(error) == "Timed out waiting for container abc123 after 2.5 seconds"

    def test_creation_names_image(self):
        assert "postgres:16" in str(CreationError("postgres:16"))

    def test_start_names_container(self):
        assert "abc123" in str(StartError("abc123"))

    def test_upload_names_path(self):
        error = UploadError("abc123", "/opt")

        assert "/opt" in str(error)
        assert "abc123" in str(error)

    def test_credential_helper_names_registry(self):
        error = CredentialHelperError("docker-credential-desktop", "ghcr.io")

        assert "ghcr.io" in str(error)
        assert error.helper == "docker-credential-desktop"


class TestToDict:
    """Tests for structured rendering."""

    def test_minimal(self):
        assert ConfigurationError("bad").to_dict() == {"error": "bad", "error_type": "configuration"}

    def test_with_container_and_details(self):
        error = ContainerException(
            "boom",
            error_type=ErrorType.START_FAILED,
            container_id="abc",
            details=["port busy"],
        )

        assert error.to_dict() == {
            "error": "boom",
            "error_type": "start_failed",
            "container_id": "abc",
            "details": ["port busy"],
        }
