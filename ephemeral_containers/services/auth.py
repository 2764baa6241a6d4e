"""Registry authentication from Docker config documents.

Credentials are looked up in this order for a normalized registry key:
explicit ``auths`` entries (base64 ``auth`` or ``username``/``password``),
then a per-registry ``credHelpers`` entry, then the global ``credsStore``.
"""

import base64
import binascii
import json
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..models.errors import ConfigurationError, CredentialHelperError
from ..utils.process import CommandRunner

logger = structlog.get_logger(__name__)

DOCKER_HUB_KEY = "https://index.docker.io/v1/"
DOCKER_HUB_ALIASES = {"docker.io", "index.docker.io", "registry-1.docker.io"}
DEFAULT_REGISTRY = "docker.io"
SYSTEM_CONFIG_PATH = "/etc/docker/config.json"
HELPER_PREFIX = "docker-credential-"
CREDENTIALS_NOT_FOUND = "credentials not found"


@dataclass(frozen=True)
class RegistryCredentials:
    """Username/password pair for one registry."""

    username: str
    password: str

    def to_auth_config(self) -> Dict[str, str]:
        """Shape accepted by docker-py's ``auth_config`` arguments."""
        return {"username": self.username, "password": self.password}


class RegistryAuthEntry(BaseModel):
    """One entry under ``auths``."""

    model_config = ConfigDict(extra="ignore")

    auth: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None


class AuthDocument(BaseModel):
    """Subset of ``~/.docker/config.json`` used for registry auth."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    auths: Dict[str, RegistryAuthEntry] = Field(default_factory=dict)
    creds_store: Optional[str] = Field(default=None, alias="credsStore")
    cred_helpers: Dict[str, str] = Field(default_factory=dict, alias="credHelpers")


def normalize_registry(registry: str) -> str:
    """Normalize a registry name to the key format used in Docker config."""
    normalized = re.sub(r"^https?://", "", registry).rstrip("/")
    if normalized in DOCKER_HUB_ALIASES or normalized == "index.docker.io/v1":
        return DOCKER_HUB_KEY
    return normalized


def get_registry_from_image(image: str) -> str:
    """Extract the registry host from an image reference.

    Examples:
        ubuntu -> docker.io
        library/ubuntu -> docker.io
        ghcr.io/owner/repo:tag -> ghcr.io
        localhost:5000/image -> localhost:5000
    """
    first, slash, _ = image.partition("/")
    if not slash:
        return DEFAULT_REGISTRY
    if "." in first or ":" in first or first == "localhost":
        return first
    return DEFAULT_REGISTRY


class DockerAuthConfig:
    """Resolves registry credentials from DOCKER_AUTH_CONFIG or config files.

    Construct once per process and pass to every GenericContainer that pulls.
    """

    def __init__(self, settings: Optional[Settings] = None, runner: Optional[CommandRunner] = None):
        self.settings = settings or Settings()
        self.runner = runner or CommandRunner()
        self._auths: Dict[str, RegistryAuthEntry] = {}
        self._creds_store: Optional[str] = None
        self._cred_helpers: Dict[str, str] = {}
        self._load_config()

    @staticmethod
    def get_registry_from_image(image: str) -> str:
        return get_registry_from_image(image)

    @staticmethod
    def normalize_registry(registry: str) -> str:
        return normalize_registry(registry)

    @property
    def creds_store(self) -> Optional[str]:
        return self._creds_store

    @property
    def cred_helpers(self) -> Dict[str, str]:
        return dict(self._cred_helpers)

    def config_paths(self) -> List[str]:
        """Auth files searched when DOCKER_AUTH_CONFIG is unset, in order."""
        paths = []
        if self.settings.home:
            paths.append(os.path.join(self.settings.home, ".docker", "config.json"))
        paths.append(SYSTEM_CONFIG_PATH)
        return paths

    def _load_config(self) -> None:
        raw = self.settings.docker_auth_config
        data: Any = None

        if raw:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in DOCKER_AUTH_CONFIG: {e}") from e
            source = "DOCKER_AUTH_CONFIG"
        else:
            source = None
            for path in self.config_paths():
                if not os.path.isfile(path):
                    continue
                try:
                    with open(path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                except OSError as e:
                    logger.warning("Could not read Docker config", path=path, error=str(e))
                    continue
                except json.JSONDecodeError as e:
                    raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
                source = path
                break

        if not isinstance(data, dict):
            return

        try:
            document = AuthDocument.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid Docker auth config in {source}: {e}") from e

        self._auths = {normalize_registry(key): entry for key, entry in document.auths.items()}
        self._creds_store = document.creds_store
        self._cred_helpers = {normalize_registry(key): helper for key, helper in document.cred_helpers.items()}

        logger.debug(
            "Loaded Docker auth config",
            source=source,
            registries=len(self._auths),
            creds_store=self._creds_store,
            cred_helpers=len(self._cred_helpers),
        )

    def get_auth_for_registry(self, registry: str) -> Optional[RegistryCredentials]:
        """Get credentials for a registry, or None when none are configured."""
        key = normalize_registry(registry)

        entry = self._auths.get(key)
        if entry is not None:
            if entry.auth:
                return self._decode_auth(entry.auth, key)
            if entry.username is not None and entry.password is not None:
                return RegistryCredentials(username=entry.username, password=entry.password)

        helper = self._cred_helpers.get(key)
        if helper:
            return self._credentials_from_helper(helper, key)

        if self._creds_store:
            return self._credentials_from_helper(self._creds_store, key)

        return None

    def get_auth_for_image(self, image: str) -> Optional[RegistryCredentials]:
        """Get credentials for the registry an image is pulled from."""
        return self.get_auth_for_registry(get_registry_from_image(image))

    @staticmethod
    def _decode_auth(auth: str, registry: str) -> RegistryCredentials:
        try:
            decoded = base64.b64decode(auth, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Invalid auth format for registry {registry}: not valid base64") from e

        if ":" not in decoded:
            raise ConfigurationError(f"Invalid auth format for registry {registry}")
        username, password = decoded.split(":", 1)
        return RegistryCredentials(username=username, password=password)

    def _credentials_from_helper(self, helper: str, registry: str) -> Optional[RegistryCredentials]:
        executable = HELPER_PREFIX + helper
        path = self.runner.which(executable)
        if not path:
            logger.debug("Credential helper not installed", helper=executable, registry=registry)
            return None

        result = self.runner.run([path, "get"], input=registry)

        if not result.ok:
            output = f"{result.stderr}\n{result.stdout}"
            if CREDENTIALS_NOT_FOUND in output:
                logger.debug("Credential helper has no entry", helper=executable, registry=registry)
                return None
            raise CredentialHelperError(
                helper=executable,
                registry=registry,
                message=f"Credential helper {executable} failed for registry {registry}: {result.stderr.strip()}",
            )

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise CredentialHelperError(
                helper=executable,
                registry=registry,
                message=f"Invalid JSON from credential helper {executable}: {e}",
            ) from e

        if not isinstance(payload, dict):
            raise CredentialHelperError(
                helper=executable,
                registry=registry,
                message=f"Credential helper {executable} returned an invalid response",
            )

        username = payload.get("Username")
        secret = payload.get("Secret")
        if not isinstance(username, str) or not isinstance(secret, str):
            return None
        return RegistryCredentials(username=username, password=secret)
