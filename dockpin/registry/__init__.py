"""
Registry Module

Client for the subset of the registry v2 API needed to pin image tags.

Architecture:
- SchemaProbe: https/http detection and bearer challenge discovery
- AuthNegotiator: token exchange or direct Basic/Bearer credentials
- TagLister: paginated tag listing
- DigestResolver: manifest digest lookups (single and bounded fan-out)
- RegistryAdapter: facade that wires the above per repository
"""

from dockpin.registry.adapter import RegistryAdapter, RegistryConnection
from dockpin.registry.auth import AuthNegotiator
from dockpin.registry.digest_resolver import DigestResolver
from dockpin.registry.errors import (
    ImageNotFound,
    RegistryError,
    RegistryUnreachable,
    TlsNegotiationFailed,
    Unauthorized,
)
from dockpin.registry.schema_probe import SchemaProbe
from dockpin.registry.tag_lister import TagLister
from dockpin.registry.transport import RegistryResponse, RegistryTransport

__all__ = [
    'RegistryAdapter',
    'RegistryConnection',
    'AuthNegotiator',
    'DigestResolver',
    'SchemaProbe',
    'TagLister',
    'RegistryResponse',
    'RegistryTransport',
    'RegistryError',
    'RegistryUnreachable',
    'TlsNegotiationFailed',
    'Unauthorized',
    'ImageNotFound',
]
