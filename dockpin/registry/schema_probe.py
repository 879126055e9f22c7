"""
Schema probe.

Figures out whether a registry speaks HTTPS or plain HTTP and reads any bearer
challenge advertised by its API root (`GET /v2/`). HTTPS is always tried first;
only a TLS failure triggers the single fallback attempt over HTTP.
"""

import logging

from dockpin.models.image import api_host_for
from dockpin.models.registry import SCHEME_HTTP, SCHEME_HTTPS, RegistryEndpoint
from dockpin.registry.errors import RegistryUnreachable, TlsNegotiationFailed
from dockpin.registry.parsing import parse_www_authenticate
from dockpin.registry.transport import RegistryResponse, RegistryTransport

logger = logging.getLogger(__name__)


class SchemaProbe:
    """Determines the scheme and auth challenge of a registry"""

    def __init__(self, transport: RegistryTransport):
        self.transport = transport

    async def _get_base(self, scheme: str, host: str) -> RegistryResponse:
        # lightweight version check; also provokes a 401 challenge when auth is needed
        return await self.transport.request("GET", f"{scheme}://{host}/v2/")

    @staticmethod
    def _challenge_from(response: RegistryResponse):
        if response.status != 401:
            return None
        www_auth = response.headers.get("WWW-Authenticate")
        logger.debug(f"Registry base url: {response.url}, authentication methods: {www_auth}")
        return parse_www_authenticate(www_auth)

    async def probe(self, host: str) -> RegistryEndpoint:
        """
        Probe a registry host.

        Args:
            host: Registry host as written in the image reference (Docker Hub
                aliases are mapped to the API host)

        Returns:
            RegistryEndpoint with scheme, API host and optional challenge

        Raises:
            RegistryUnreachable: HTTPS failed for a non-TLS reason, or HTTP
                fallback failed too
        """
        api_host = api_host_for(host)

        try:
            response = await self._get_base(SCHEME_HTTPS, api_host)
            challenge = self._challenge_from(response)
            logger.debug(f"Registry {api_host} speaks https (status {response.status}, challenge: {challenge is not None})")
            return RegistryEndpoint(scheme=SCHEME_HTTPS, host=api_host, challenge=challenge)
        except TlsNegotiationFailed as e:
            logger.info(f"TLS negotiation with {api_host} failed, trying plain http: {e.message}")

        try:
            response = await self._get_base(SCHEME_HTTP, api_host)
        except RegistryUnreachable as e:
            raise RegistryUnreachable(
                f"No response from the registry server over https or http: {e.message}",
                endpoint=f"{SCHEME_HTTP}://{api_host}/v2/",
            )

        if response.status not in (200, 401):
            raise RegistryUnreachable(
                "Registry did not answer over http after https failed",
                endpoint=response.url,
                status=response.status,
            )

        logger.debug(f"Registry {api_host} speaks http")
        return RegistryEndpoint(scheme=SCHEME_HTTP, host=api_host, challenge=self._challenge_from(response))
