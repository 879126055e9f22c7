"""
HTTP transport for registry calls.

Wraps a single shared aiohttp.ClientSession. Responses are read fully before
the connection is released, so callers get a plain RegistryResponse and never
deal with aiohttp response lifetimes. Transport failures are translated into
the registry error taxonomy here, in one place.
"""

import asyncio
import json
import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp
from multidict import CIMultiDict, CIMultiDictProxy

from dockpin.registry.errors import RegistryError, RegistryUnreachable, TlsNegotiationFailed

logger = logging.getLogger(__name__)


@dataclass
class RegistryResponse:
    """Status, headers and body of a completed registry request"""
    status: int
    url: str
    headers: CIMultiDictProxy = field(default_factory=lambda: CIMultiDictProxy(CIMultiDict()))
    body: bytes = b""

    def json(self) -> Any:
        """Decode the body as JSON, raising RegistryError on malformed content"""
        try:
            return json.loads(self.body.decode("utf-8") or "null")
        except (ValueError, UnicodeDecodeError) as e:
            raise RegistryError(f"Malformed JSON response: {e}", endpoint=self.url, status=self.status)

    def text(self, limit: int = 200) -> str:
        return self.body[:limit].decode("utf-8", errors="replace")


class RegistryTransport:
    """
    Shared aiohttp session with connect/total timeouts.

    Use as an async context manager, or call close() when done:

        async with RegistryTransport(timeout=30) as transport:
            response = await transport.request("GET", url)
    """

    def __init__(
        self,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._timeout = aiohttp.ClientTimeout(total=timeout, connect=connect_timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> 'RegistryTransport':
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
        allow_redirects: bool = True,
    ) -> RegistryResponse:
        """
        Issue a request and read the whole response.

        Raises:
            TlsNegotiationFailed: TLS handshake/certificate failure
            RegistryUnreachable: Any other connection failure or timeout
        """
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                headers=dict(headers or {}),
                params=params,
                allow_redirects=allow_redirects,
            ) as response:
                body = await response.read()
                return RegistryResponse(
                    status=response.status,
                    url=str(response.url),
                    headers=CIMultiDictProxy(CIMultiDict(response.headers)),
                    body=body,
                )
        except (aiohttp.ClientSSLError, ssl.SSLError) as e:
            raise TlsNegotiationFailed(f"TLS negotiation failed: {e}", endpoint=url)
        except asyncio.TimeoutError:
            raise RegistryUnreachable("Timed out waiting for registry", endpoint=url)
        except (aiohttp.ClientError, OSError) as e:
            raise RegistryUnreachable(f"No response from the registry server: {e}", endpoint=url)
