"""
Unit tests for RegistryTransport.

Tests verify:
- Responses are read fully into RegistryResponse (status, headers, body)
- Timeouts and refused connections become RegistryUnreachable
- TLS handshake failures become TlsNegotiationFailed, other failures never do
- Malformed JSON bodies raise RegistryError
"""

import asyncio

import aiohttp
import pytest
from aiohttp import test_utils, web

from dockpin.registry.errors import RegistryError, RegistryUnreachable, TlsNegotiationFailed
from dockpin.registry.transport import RegistryResponse, RegistryTransport


@pytest.fixture
async def server():
    """Plain HTTP server with a fast and a hanging endpoint"""
    release = asyncio.Event()

    async def ok(request):
        return web.json_response({"echo": dict(request.query)}, headers={"Docker-Content-Digest": "sha256:abc"})

    async def slow(request):
        # Held open until teardown so the client gives up first
        try:
            await asyncio.wait_for(release.wait(), timeout=5)
        except asyncio.TimeoutError:
            pass
        return web.Response(text="too late")

    app = web.Application()
    app.router.add_get("/ok", ok)
    app.router.add_get("/slow", slow)

    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    release.set()
    await test_server.close()


def url_of(test_server, path, scheme="http"):
    return f"{scheme}://{test_server.host}:{test_server.port}{path}"


class TestRequest:
    """Tests for successful requests"""

    async def test_response_read_fully(self, server):
        """Should return status, case-insensitive headers and the whole body"""
        async with RegistryTransport(timeout=5) as transport:
            response = await transport.request("GET", url_of(server, "/ok"), params={"n": "2"})

        assert response.status == 200
        assert response.headers.get("docker-content-digest") == "sha256:abc"
        assert response.json() == {"echo": {"n": "2"}}

    async def test_close_releases_owned_session(self, server):
        """Should close the session it created and reopen one lazily"""
        transport = RegistryTransport(timeout=5)
        await transport.request("GET", url_of(server, "/ok"))
        await transport.close()

        response = await transport.request("GET", url_of(server, "/ok"))
        await transport.close()

        assert response.status == 200

    async def test_external_session_left_open(self, server):
        """Should not close a session passed in by the caller"""
        async with aiohttp.ClientSession() as session:
            transport = RegistryTransport(session=session)
            await transport.request("GET", url_of(server, "/ok"))
            await transport.close()

            assert not session.closed


class TestTransportFailures:
    """Tests for translating transport failures into registry errors"""

    async def test_timeout_is_unreachable(self, server):
        """Should raise RegistryUnreachable when the registry doesn't answer in time"""
        async with RegistryTransport(timeout=0.3, connect_timeout=0.3) as transport:
            with pytest.raises(RegistryUnreachable) as exc_info:
                await transport.request("GET", url_of(server, "/slow"))

        assert not isinstance(exc_info.value, TlsNegotiationFailed)
        assert exc_info.value.endpoint == url_of(server, "/slow")

    async def test_refused_connection_is_unreachable_not_tls(self):
        """Should raise RegistryUnreachable, not TlsNegotiationFailed, when nothing listens"""
        url = f"https://127.0.0.1:{test_utils.unused_port()}/v2/"

        async with RegistryTransport(timeout=5) as transport:
            with pytest.raises(RegistryUnreachable) as exc_info:
                await transport.request("GET", url)

        assert not isinstance(exc_info.value, TlsNegotiationFailed)

    async def test_https_to_plain_http_server_is_tls_failure(self, server):
        """Should raise TlsNegotiationFailed when the server doesn't speak TLS"""
        async with RegistryTransport(timeout=5) as transport:
            with pytest.raises(TlsNegotiationFailed):
                await transport.request("GET", url_of(server, "/ok", scheme="https"))


class TestRegistryResponse:
    """Tests for RegistryResponse body helpers"""

    def test_malformed_json_is_registry_error(self):
        """Should raise RegistryError carrying the url and status"""
        response = RegistryResponse(status=200, url="https://registry.example.com/v2/", body=b"<html>oops")

        with pytest.raises(RegistryError, match="Malformed JSON") as exc_info:
            response.json()

        assert exc_info.value.status == 200
        assert exc_info.value.endpoint == "https://registry.example.com/v2/"

    def test_empty_body_is_none(self):
        """Should decode an empty body as None"""
        assert RegistryResponse(status=200, url="u").json() is None

    def test_text_is_truncated(self):
        """Should limit text() to the requested number of bytes"""
        response = RegistryResponse(status=500, url="u", body=b"x" * 500)

        assert response.text(10) == "x" * 10
