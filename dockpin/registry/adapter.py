"""
Registry Adapter

Facade over the registry protocol components. `connect()` probes the registry,
negotiates auth for one repository and returns a RegistryConnection bound to
that repository, through which tags and digests are queried.

    async with RegistryAdapter(settings) as adapter:
        connection = await adapter.connect(reference, credentials)
        tags = await connection.list_tags()
        digest = await connection.get_digest("latest")
"""

import logging
from typing import List, Optional, Sequence

from dockpin.config.settings import Settings
from dockpin.models.image import ImageReference
from dockpin.models.registry import Credentials, DigestRecord, RegistryEndpoint
from dockpin.registry.auth import AuthNegotiator
from dockpin.registry.digest_resolver import DigestResolver
from dockpin.registry.schema_probe import SchemaProbe
from dockpin.registry.tag_lister import TagLister
from dockpin.registry.transport import RegistryTransport

logger = logging.getLogger(__name__)


class RegistryConnection:
    """An authorized view of a single repository on a registry"""

    def __init__(
        self,
        endpoint: RegistryEndpoint,
        repository: str,
        auth_header: Optional[str],
        tag_lister: TagLister,
        digest_resolver: DigestResolver,
    ):
        self.endpoint = endpoint
        self.repository = repository
        self.auth_header = auth_header
        self._tag_lister = tag_lister
        self._digest_resolver = digest_resolver

    async def list_tags(self) -> List[str]:
        return await self._tag_lister.list_tags(self.endpoint, self.repository, self.auth_header)

    async def get_digest(self, tag: str) -> str:
        return await self._digest_resolver.get_digest(self.endpoint, self.repository, tag, self.auth_header)

    async def get_digests(self, tags: Sequence[str]) -> List[DigestRecord]:
        return await self._digest_resolver.get_digests(self.endpoint, self.repository, tags, self.auth_header)

    def __repr__(self) -> str:
        return f"RegistryConnection({self.endpoint.base_url}/{self.repository})"


class RegistryAdapter:
    """
    Adapter for querying container registries.

    Supports Docker Hub, GHCR and any registry implementing the v2 tag list,
    manifest HEAD and bearer token endpoints.
    """

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[RegistryTransport] = None):
        self.settings = settings or Settings()
        self.transport = transport or RegistryTransport(
            timeout=self.settings.request_timeout,
            connect_timeout=self.settings.connect_timeout,
        )
        self.schema_probe = SchemaProbe(self.transport)
        self.auth = AuthNegotiator(self.transport)
        self.tag_lister = TagLister(self.transport, page_size=self.settings.tags_page_size)
        self.digest_resolver = DigestResolver(self.transport, concurrency=self.settings.digest_concurrency)

    async def __aenter__(self) -> 'RegistryAdapter':
        await self.transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self.transport.close()

    async def connect(
        self,
        reference: ImageReference,
        credentials: Optional[Credentials] = None,
    ) -> RegistryConnection:
        """
        Probe the reference's registry and authorize pull access to its repository.

        Raises:
            RegistryUnreachable: Registry can't be reached over https or http
            Unauthorized: Token endpoint rejected the credentials
            RegistryError: Token endpoint failed
        """
        endpoint = await self.schema_probe.probe(reference.registry_host)
        auth_header = await self.auth.authorize(endpoint.challenge, credentials, reference.repository_path)
        logger.debug(
            f"Connected to {endpoint.base_url} for {reference.repository_path} "
            f"(auth: {auth_header.split(' ', 1)[0] if auth_header else 'anonymous'})"
        )
        return RegistryConnection(
            endpoint=endpoint,
            repository=reference.repository_path,
            auth_header=auth_header,
            tag_lister=self.tag_lister,
            digest_resolver=self.digest_resolver,
        )
