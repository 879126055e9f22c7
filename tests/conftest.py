"""
Shared pytest fixtures for dockpin tests.

Fixtures provided:
- make_response: Build RegistryResponse objects (status, headers, JSON body)
- mock_transport: RegistryTransport double whose request() is an AsyncMock
- endpoint: An https RegistryEndpoint without challenge
- fake_connection_factory: In-memory RegistryConnection over a tag → digest map

Note: unit tests use these doubles instead of sockets, except the transport
tests, which talk to a local aiohttp server. Integration tests under
tests/integration run an in-process aiohttp registry.
"""

import json
from typing import Dict, List, Optional, Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest
from multidict import CIMultiDict, CIMultiDictProxy

from dockpin.models.registry import DigestRecord, RegistryEndpoint
from dockpin.registry.errors import ImageNotFound
from dockpin.registry.transport import RegistryResponse, RegistryTransport


def build_response(status=200, headers=None, json_body=None, body=b"", url="https://registry.example.com/v2/"):
    if json_body is not None:
        body = json.dumps(json_body).encode("utf-8")
    return RegistryResponse(
        status=status,
        url=url,
        headers=CIMultiDictProxy(CIMultiDict(headers or {})),
        body=body,
    )


@pytest.fixture
def make_response():
    """Factory for RegistryResponse objects"""
    return build_response


@pytest.fixture
def mock_transport():
    """
    RegistryTransport double.

    Set `mock_transport.request.return_value` or `.side_effect` per test and
    inspect `mock_transport.request.call_args_list` afterwards.
    """
    transport = MagicMock(spec=RegistryTransport)
    transport.request = AsyncMock()
    transport.close = AsyncMock()
    return transport


@pytest.fixture
def endpoint():
    return RegistryEndpoint(scheme="https", host="registry.example.com")


class FakeConnection:
    """
    In-memory stand-in for RegistryConnection.

    Tags missing from `digests` but present in `tags` behave like manifests that
    vanished between listing and lookup (ImageNotFound).
    """

    def __init__(self, digests: Dict[str, str], tags: Optional[List[str]] = None):
        self.digests = dict(digests)
        self.tags = list(digests) if tags is None else list(tags)
        self.digest_calls: List[str] = []
        self.errors: Dict[str, Exception] = {}

    async def list_tags(self) -> List[str]:
        return list(self.tags)

    async def get_digest(self, tag: str) -> str:
        self.digest_calls.append(tag)
        if tag in self.errors:
            raise self.errors[tag]
        if tag not in self.digests:
            raise ImageNotFound("Image not found in registry", status=404, tag=tag)
        return self.digests[tag]

    async def get_digests(self, tags: Sequence[str]) -> List[DigestRecord]:
        records = []
        for tag in tags:
            try:
                records.append(DigestRecord(tag=tag, digest=await self.get_digest(tag)))
            except ImageNotFound:
                continue
        return records


@pytest.fixture
def fake_connection_factory():
    """Factory for FakeConnection objects"""
    return FakeConnection
