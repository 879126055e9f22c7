"""
Unit tests for WWW-Authenticate and Link header parsing.

Both parsers must fall back to "no challenge" / "no next page" on anything
outside their grammar instead of raising.
"""

import pytest

from dockpin.models.registry import AuthChallenge
from dockpin.registry.parsing import parse_link_next, parse_www_authenticate


class TestParseWwwAuthenticate:
    """Tests for bearer challenge parsing"""

    def test_bearer_challenge(self):
        """Should extract realm and service"""
        header = 'Bearer realm="https://auth.docker.io/token",service="registry.docker.io"'

        assert parse_www_authenticate(header) == AuthChallenge(
            token_endpoint="https://auth.docker.io/token",
            service="registry.docker.io",
        )

    def test_bearer_challenge_with_scope(self):
        """Should ignore a trailing scope parameter"""
        header = 'Bearer realm="https://ghcr.io/token",service="ghcr.io",scope="repository:user/app:pull"'

        challenge = parse_www_authenticate(header)

        assert challenge.token_endpoint == "https://ghcr.io/token"
        assert challenge.service == "ghcr.io"

    @pytest.mark.parametrize("header", [
        None,
        "",
        'Basic realm="Registry Realm"',
        'Bearer realm="https://auth.example.com/token"',
        'Bearer service="x",realm="https://auth.example.com/token"',
    ])
    def test_non_matching_header_yields_no_challenge(self, header):
        """Anything but Bearer realm then service should mean no challenge"""
        assert parse_www_authenticate(header) is None


class TestParseLinkNext:
    """Tests for Link rel="next" parsing"""

    def test_absolute_next_link(self):
        """Should return the query of an absolute next link"""
        header = '<https://registry.example.com/v2/app/tags/list?n=1000&last=v1.2>; rel="next"'

        assert parse_link_next(header) == {"n": "1000", "last": "v1.2"}

    def test_relative_next_link(self):
        """Should return the query of a relative next link"""
        header = '</v2/app/tags/list?last=v2&n=50>; rel="next"'

        assert parse_link_next(header) == {"last": "v2", "n": "50"}

    def test_query_values_are_decoded(self):
        """Should URL-decode query values"""
        header = '</v2/app/tags/list?n=10&last=1.0%2Bbuild>; rel="next"'

    def test_blank_query_values_are_kept(self):
        """Should keep parameters with blank values"""
        header = '<https://registry.example.com/v2/app/tags/list?n=2&last=>; rel="next"'

        assert parse_link_next(header) == {"n": "2", "last": ""}

        assert parse_link_next(header)["last"] == "1.0+build"

    @pytest.mark.parametrize("header", [
        None,
        "",
        '<https://registry.example.com/v2/app/tags/list?n=10&last=a>; rel="prev"',
        '<https://registry.example.com/v2/app/tags/list?n=10&last=a>;rel=next',
        "garbage",
    ])
    def test_other_forms_mean_no_next_page(self, header):
        """Other rel values or formats should mean no next page"""
        assert parse_link_next(header) is None

    def test_link_without_query_stops_pagination(self):
        """A next link without a query should stop pagination"""
        assert parse_link_next('</v2/app/tags/list>; rel="next"') is None
