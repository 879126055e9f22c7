"""
Registry Credentials Utility

Centralized credential lookup for registries. The resolver only ever sees a
single Credentials value (or None for anonymous access) per registry host;
where those come from is up to the CredentialsProvider.
"""

import logging
import os
from typing import Dict, Mapping, Optional, Protocol

from dockpin.models.image import DEFAULT_REGISTRY, is_docker_hub
from dockpin.models.registry import Credentials

logger = logging.getLogger(__name__)


def normalize_registry_host(registry_host: str) -> str:
    """
    Normalize a registry host for credential lookup.

    Examples:
        GHCR.io → ghcr.io
        https://registry.example.com:5000/ → registry.example.com:5000
        index.docker.io → docker.io
    """
    host = registry_host.strip().lower()
    for prefix in ("https://", "http://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
    host = host.split("/", 1)[0]
    if is_docker_hub(host):
        return DEFAULT_REGISTRY
    return host


class CredentialsProvider(Protocol):
    """Supplies credentials for a registry host, or None for anonymous access"""

    def get_credentials(self, registry_host: str) -> Optional[Credentials]:
        ...


class NullCredentialsProvider:
    """Always anonymous"""

    def get_credentials(self, registry_host: str) -> Optional[Credentials]:
        return None


class StaticCredentialsProvider:
    """Credentials from an in-memory host → Credentials mapping"""

    def __init__(self, credentials: Optional[Mapping[str, Credentials]] = None):
        self._credentials: Dict[str, Credentials] = {}
        for host, creds in (credentials or {}).items():
            self.add(host, creds)

    def add(self, registry_host: str, credentials: Credentials):
        self._credentials[normalize_registry_host(registry_host)] = credentials

    def get_credentials(self, registry_host: str) -> Optional[Credentials]:
        registry_url = normalize_registry_host(registry_host)
        creds = self._credentials.get(registry_url)
        logger.debug(f"Credential lookup result: {creds is not None} (registry_url='{registry_url}')")
        return creds


class EnvCredentialsProvider:
    """
    Credentials from DOCKPIN_REGISTRY_* environment variables.

    DOCKPIN_REGISTRY_USERNAME / DOCKPIN_REGISTRY_PASSWORD, DOCKPIN_REGISTRY_IDENTITY_TOKEN
    and DOCKPIN_REGISTRY_AUTH (pre-encoded base64 user:password) are used for every
    registry, unless DOCKPIN_REGISTRY_HOST restricts them to one host.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        env = os.environ if environ is None else environ
        self._host = env.get('DOCKPIN_REGISTRY_HOST') or None
        credentials = Credentials(
            username=env.get('DOCKPIN_REGISTRY_USERNAME') or None,
            password=env.get('DOCKPIN_REGISTRY_PASSWORD') or None,
            identity_token=env.get('DOCKPIN_REGISTRY_IDENTITY_TOKEN') or None,
            pre_encoded_auth=env.get('DOCKPIN_REGISTRY_AUTH') or None,
        )
        self._credentials = None if credentials.is_empty() else credentials

    def get_credentials(self, registry_host: str) -> Optional[Credentials]:
        if self._credentials is None:
            return None
        if self._host and normalize_registry_host(self._host) != normalize_registry_host(registry_host):
            logger.debug(f"Environment credentials are for {self._host}, not {registry_host}")
            return None
        return self._credentials
